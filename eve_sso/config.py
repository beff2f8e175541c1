"""Configuration for the EVE Online SSO client."""

import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

LOGIN_URL = "https://login.eveonline.com/v2/oauth/authorize"
TOKEN_URL = "https://login.eveonline.com/v2/oauth/token"


def parse_scopes(value: Optional[str]) -> Tuple[str, ...]:
    """Split a space or comma separated scope string."""
    if not value:
        return ()
    return tuple(scope for scope in re.split(r"[\s,]+", value) if scope)


@dataclass(frozen=True)
class SSOConfig:
    """Application registration details from the EVE developer portal."""

    client_id: str
    secret_key: str
    callback_url: str
    scopes: Tuple[str, ...] = field(default_factory=tuple)
    login_url: str = LOGIN_URL
    token_url: str = TOKEN_URL

    def __post_init__(self):
        # Lists passed by callers are frozen along with the rest of the config
        object.__setattr__(self, "scopes", tuple(self.scopes or ()))

    @classmethod
    def from_env(cls, **overrides: Any) -> "SSOConfig":
        """
        Build a config from environment variables.

        Reads EVE_CLIENT_ID, EVE_SECRET_KEY, EVE_CALLBACK_URL, EVE_SCOPES,
        EVE_SSO_LOGIN_URL and EVE_SSO_TOKEN_URL. Keyword arguments win over
        the environment.
        """
        values: Dict[str, Any] = {
            "client_id": os.getenv("EVE_CLIENT_ID", ""),
            "secret_key": os.getenv("EVE_SECRET_KEY", ""),
            "callback_url": os.getenv("EVE_CALLBACK_URL", ""),
            "scopes": parse_scopes(os.getenv("EVE_SCOPES")),
            "login_url": os.getenv("EVE_SSO_LOGIN_URL", LOGIN_URL),
            "token_url": os.getenv("EVE_SSO_TOKEN_URL", TOKEN_URL),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def validate(self) -> List[str]:
        """Return a list of configuration problems, empty when usable."""
        errors = []
        if not self.client_id:
            errors.append("EVE SSO client_id is required")
        if not self.secret_key:
            errors.append("EVE SSO secret_key is required")
        if not self.callback_url:
            errors.append("EVE SSO callback_url is required")

        for name, url in (("login_url", self.login_url), ("token_url", self.token_url)):
            if not url.startswith("https://"):
                errors.append(f"{name} must use https: {url}")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["scopes"] = list(self.scopes)
        data["secret_key"] = "***" if self.secret_key else ""
        return data
