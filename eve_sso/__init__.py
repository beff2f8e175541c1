"""
EVE SSO - OAuth 2.0 login client for EVE Online single sign-on
"""

__version__ = "1.0.0"

from eve_sso.client import EveOnlineSSO
from eve_sso.config import SSOConfig
from eve_sso.exceptions import (
    InvalidStateError,
    SessionFileError,
    SSOError,
    SSOTransportError,
    TokenResponseError,
    UnknownSessionTypeError,
)
from eve_sso.session import (
    AttributeSession,
    FileSession,
    MappingSession,
    SegmentSession,
    SessionStorage,
)
from eve_sso.tokens import CharacterToken, decode_token_claims

__all__ = [
    "__version__",
    "EveOnlineSSO",
    "SSOConfig",
    "CharacterToken",
    "decode_token_claims",
    "SessionStorage",
    "MappingSession",
    "AttributeSession",
    "SegmentSession",
    "FileSession",
    "SSOError",
    "UnknownSessionTypeError",
    "SessionFileError",
    "InvalidStateError",
    "TokenResponseError",
    "SSOTransportError",
]
