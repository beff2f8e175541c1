"""
EVE Online SSO Exceptions

Every failure in the login flow is raised to the caller as one of these.
"""

from typing import Optional


class SSOError(Exception):
    """Base class for EVE Online SSO errors."""


class UnknownSessionTypeError(SSOError):
    """Session storage object that no adapter knows how to drive."""

    def __init__(self, session: object):
        self.session_type = type(session).__name__
        super().__init__(f"Unknown session type: {self.session_type}")


class SessionFileError(SSOError):
    """On-disk session can't be read."""


class InvalidStateError(SSOError):
    """Callback state does not match the state issued at login."""

    def __init__(self, message: str = "Invalid state returned - possible hijacking attempt"):
        super().__init__(message)


class TokenResponseError(SSOError):
    """Token endpoint returned something other than a usable token."""

    def __init__(self, message: str, body: Optional[str] = None):
        self.body = body
        if body is not None:
            message = f"{message}:\n{body}"
        super().__init__(message)


class SSOTransportError(SSOError):
    """Network or TLS failure talking to the SSO servers."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}" if code else message)
