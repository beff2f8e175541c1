"""
EVE Online SSO Client

Implements the OAuth 2.0 authorization code flow against login.eveonline.com:
login URL generation, callback state validation, code and refresh token
exchange, and the authenticated HTTP call everything else goes through.
"""

import base64
import json
import secrets
import string
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from eve_sso._logging import verbose_sso_logger
from eve_sso.config import LOGIN_URL, TOKEN_URL, SSOConfig
from eve_sso.exceptions import (
    InvalidStateError,
    SSOTransportError,
    TokenResponseError,
)
from eve_sso.session import STATE_KEY, adapt_session
from eve_sso.tokens import CharacterToken

STATE_LENGTH = 128
STATE_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase

JSON_BODY_CALL_TYPES = ("PUT", "DELETE", "POST_JSON")
CALL_TYPES = ("GET", "POST") + JSON_BODY_CALL_TYPES


def build_params(fields: Optional[Dict[str, Any]]) -> str:
    """Percent-encode fields into a query string (spaces become %20)."""
    if not fields:
        return ""
    return "&".join(f"{name}={quote(str(value), safe='')}" for name, value in fields.items())


class EveOnlineSSO:
    """
    OAuth 2.0 client for EVE Online single sign-on.

    A login attempt goes through two calls:
    1. get_login_url() issues a state, stores it in the caller's session
       and returns the URL to send the user to
    2. handle_callback() checks the returned state against the session and
       exchanges the authorization code for the character's tokens

    Calls are synchronous and are not retried.
    """

    def __init__(
        self,
        client_id: str,
        secret_key: str,
        callback_url: str,
        scopes: Optional[Iterable[str]] = None,
        http_client: Optional[httpx.Client] = None,
        login_url: str = LOGIN_URL,
        token_url: str = TOKEN_URL,
    ):
        """
        Args:
            client_id: Application client ID from the EVE developer portal
            secret_key: Application secret key
            callback_url: Redirect URI registered for the application
            scopes: ESI scopes to request at login
            http_client: httpx client to send requests with. Must keep TLS
                         verification on; one is created when omitted.
            login_url: Authorization endpoint
            token_url: Token endpoint
        """
        self.config = SSOConfig(
            client_id=client_id,
            secret_key=secret_key,
            callback_url=callback_url,
            scopes=tuple(scopes or ()),
            login_url=login_url,
            token_url=token_url,
        )
        self._state: Optional[str] = None
        self.http_client = http_client or httpx.Client(verify=True)

    @classmethod
    def from_config(cls, config: SSOConfig, http_client: Optional[httpx.Client] = None) -> "EveOnlineSSO":
        return cls(
            client_id=config.client_id,
            secret_key=config.secret_key,
            callback_url=config.callback_url,
            scopes=config.scopes,
            http_client=http_client,
            login_url=config.login_url,
            token_url=config.token_url,
        )

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def callback_url(self) -> str:
        return self.config.callback_url

    @property
    def scopes(self) -> List[str]:
        return list(self.config.scopes)

    # -- state -------------------------------------------------------------

    @staticmethod
    def create_state() -> str:
        """Generate a random alphanumeric state for CSRF protection."""
        return "".join(secrets.choice(STATE_ALPHABET) for _ in range(STATE_LENGTH))

    @property
    def state(self) -> Optional[str]:
        return self._state

    def get_state(self) -> Optional[str]:
        return self._state

    def set_state(self, state: Optional[str]) -> None:
        """Use a caller-supplied state instead of a generated one."""
        self._state = state

    # -- login flow --------------------------------------------------------

    def get_login_url(self, session: Any, state: Optional[str] = None) -> str:
        """
        Build the authorization URL and record the state in the session.

        Args:
            session: Caller's session storage (see eve_sso.session)
            state: State for this attempt only. Without it the client's own
                   state is used, generated on first use.

        Returns:
            URL to redirect the user's browser to

        Raises:
            UnknownSessionTypeError: If the session can't be adapted
        """
        storage = adapt_session(session)

        if state is None:
            if self._state is None:
                self._state = self.create_state()
            state = self._state
        storage.set(STATE_KEY, state)

        fields = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.callback_url,
            "scope": " ".join(self.config.scopes),
            "state": state,
        }
        verbose_sso_logger.info(
            f"Built login URL with scopes: {', '.join(self.config.scopes) or '(none)'}"
        )
        return f"{self.config.login_url}?{build_params(fields)}"

    @staticmethod
    def validate_states(state: Optional[str], stored_state: Optional[str]) -> None:
        """
        Raises:
            InvalidStateError: Unless both states are present and identical
        """
        if stored_state is None or state is None or not secrets.compare_digest(
            str(stored_state).encode(), str(state).encode()
        ):
            verbose_sso_logger.warning("SSO callback state mismatch - rejecting callback")
            raise InvalidStateError()

    def handle_callback(self, code: str, state: str, session: Any) -> CharacterToken:
        """
        Complete the login: verify state and exchange the code for tokens.

        Args:
            code: Authorization code from the callback query string
            state: State from the callback query string
            session: The session get_login_url() stored the state in

        Returns:
            CharacterToken with the character's identity and tokens

        Raises:
            UnknownSessionTypeError: If the session can't be adapted
            InvalidStateError: If the state doesn't match the stored one
            TokenResponseError: If the token endpoint response is unusable
            SSOTransportError: On network or TLS failure
        """
        storage = adapt_session(session)
        self.validate_states(state, storage.get(STATE_KEY))

        fields = {"grant_type": "authorization_code", "code": code}
        verbose_sso_logger.info("Exchanging authorization code for tokens")
        token_string = self.do_call(self.config.token_url, fields, None, "POST")

        character = CharacterToken.from_token_response(self._parse_token_json(token_string))
        verbose_sso_logger.info(
            f"SSO login complete for character {character.character_id} "
            f"with {len(character.scope_list)} scopes"
        )
        return character

    def get_access_token(self, refresh_token: str, scopes: Optional[Iterable[str]] = None) -> str:
        """
        Trade a refresh token for a new access token.

        Args:
            refresh_token: Refresh token from an earlier login
            scopes: Optional subset of the originally granted scopes

        Returns:
            The new access token

        Raises:
            TokenResponseError: If the response carries no access_token
            SSOTransportError: On network or TLS failure
        """
        access_json = self._refresh(refresh_token, scopes)
        return access_json["access_token"]

    def refresh_character_token(
        self, refresh_token: str, scopes: Optional[Iterable[str]] = None
    ) -> CharacterToken:
        """Refresh and decode the full character record, including the rotated refresh token."""
        access_json = self._refresh(refresh_token, scopes)
        access_json.setdefault("refresh_token", refresh_token)
        return CharacterToken.from_token_response(access_json)

    def _refresh(self, refresh_token: str, scopes: Optional[Iterable[str]]) -> Dict[str, Any]:
        fields = {"grant_type": "refresh_token", "refresh_token": refresh_token}
        if scopes:
            fields["scope"] = " ".join(scopes)

        verbose_sso_logger.info("Refreshing access token")
        access_string = self.do_call(self.config.token_url, fields, None, "POST")
        return self._parse_token_json(access_string)

    @staticmethod
    def _parse_token_json(body: str) -> Dict[str, Any]:
        try:
            token_json = json.loads(body)
        except ValueError:
            verbose_sso_logger.error("Token endpoint returned a non-JSON body")
            raise TokenResponseError("Unexpected value returned from call", body)

        access_token = token_json.get("access_token") if isinstance(token_json, dict) else None
        if not isinstance(access_token, str) or not access_token:
            verbose_sso_logger.error("Token endpoint response has no access_token")
            raise TokenResponseError("Unexpected value returned from call", body)
        return token_json

    # -- transport ---------------------------------------------------------

    def _basic_auth(self) -> str:
        credentials = f"{self.config.client_id}:{self.config.secret_key}".encode()
        return "Basic " + base64.b64encode(credentials).decode("ascii")

    def do_call(
        self,
        url: str,
        fields: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
        call_type: str = "GET",
    ) -> str:
        """
        Send an authenticated request and return the raw response body.

        Args:
            url: Target URL
            fields: Query parameters for GET, form fields for POST, or the
                    JSON body for PUT, DELETE and POST_JSON
            access_token: Bearer token; falls back to Basic client auth
            call_type: GET, POST, PUT, DELETE or POST_JSON (a POST with a
                       JSON body)

        Returns:
            Response body text, whatever the HTTP status

        Raises:
            ValueError: For an unsupported call type
            SSOTransportError: On network or TLS failure
        """
        call_type = call_type.upper()
        if call_type not in CALL_TYPES:
            raise ValueError(f"Unsupported call type: {call_type}")

        headers = {
            "Authorization": f"Bearer {access_token}" if access_token is not None else self._basic_auth(),
            "User-Agent": self.config.callback_url,
        }
        content = None
        method = call_type

        if call_type == "GET":
            params = build_params(fields)
            if params:
                url = f"{url}?{params}"
        elif call_type == "POST":
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            content = build_params(fields)
        else:
            headers["Content-Type"] = "application/json"
            content = json.dumps(fields or {}, separators=(",", ":"))
            if call_type == "POST_JSON":
                method = "POST"

        verbose_sso_logger.debug(f"{method} {url}")
        try:
            response = self.http_client.request(method, url, headers=headers, content=content)
        except httpx.TransportError as e:
            verbose_sso_logger.error(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise SSOTransportError(str(e), type(e).__name__) from e

        if not response.is_success:
            verbose_sso_logger.warning(f"{method} {url} returned HTTP {response.status_code}")
        return response.text

    def close(self) -> None:
        self.http_client.close()

    def __enter__(self) -> "EveOnlineSSO":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
