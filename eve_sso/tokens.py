"""
EVE SSO Token Claims

The SSO hands back a JWT access token whose payload names the character
that logged in. The payload is read here without signature verification;
it comes straight from the token endpoint over TLS.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from eve_sso.exceptions import TokenResponseError

CHARACTER_SUBJECT_PREFIX = "CHARACTER:EVE:"


def decode_token_claims(access_token: Any) -> Dict[str, Any]:
    """
    Decode the payload of a JWT access token without verifying it.

    Args:
        access_token: Encoded token, header.payload.signature

    Returns:
        Claims dictionary

    Raises:
        TokenResponseError: If the token isn't a decodable JWT
    """
    if not isinstance(access_token, str):
        raise TokenResponseError("Access token is not a string", repr(access_token))

    try:
        return jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise TokenResponseError(f"Could not decode access token ({e})", access_token) from e


@dataclass
class CharacterToken:
    """Tokens and identity for a character that completed the SSO flow."""
    character_id: str
    character_name: str
    scopes: str
    owner_hash: str
    access_token: str
    refresh_token: str
    token_type: str = "Character"
    expires_at: Optional[int] = None  # Unix timestamp

    @classmethod
    def from_token_response(cls, token_data: Dict[str, Any]) -> "CharacterToken":
        """
        Build from a parsed token endpoint response.

        Raises:
            TokenResponseError: If tokens or identity claims are missing
        """
        access_token = token_data.get("access_token")
        refresh_token = token_data.get("refresh_token")
        if not isinstance(access_token, str) or not isinstance(refresh_token, str) \
                or not access_token or not refresh_token:
            raise TokenResponseError(
                "Token response is missing access_token or refresh_token",
                json.dumps(token_data, default=repr),
            )

        claims = decode_token_claims(access_token)
        missing = [claim for claim in ("sub", "name", "owner") if not isinstance(claims.get(claim), str)]
        if missing:
            raise TokenResponseError(f"Access token is missing claims: {', '.join(missing)}", access_token)

        # scp is a bare string when a single scope was granted
        granted = claims.get("scp", [])
        if isinstance(granted, str):
            granted = [granted]
        if not isinstance(granted, list) or not all(isinstance(scope, str) for scope in granted):
            raise TokenResponseError("Access token scp claim is not a scope list", access_token)

        expires_at = claims.get("exp")
        if expires_at is not None and (isinstance(expires_at, bool) or not isinstance(expires_at, (int, float))):
            raise TokenResponseError("Access token exp claim is not a timestamp", access_token)

        return cls(
            character_id=claims["sub"].replace(CHARACTER_SUBJECT_PREFIX, ""),
            character_name=claims["name"],
            scopes=" ".join(granted),
            owner_hash=claims["owner"],
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires_at) if expires_at is not None else None,
        )

    @property
    def scope_list(self):
        return self.scopes.split()

    def is_expired(self, buffer_seconds: int = 0) -> bool:
        if self.expires_at is None:
            return False
        return int(time.time()) >= (self.expires_at - buffer_seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "characterID": self.character_id,
            "characterName": self.character_name,
            "scopes": self.scopes,
            "tokenType": self.token_type,
            "ownerHash": self.owner_hash,
            "refreshToken": self.refresh_token,
            "accessToken": self.access_token,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CharacterToken":
        return cls(
            character_id=data["characterID"],
            character_name=data["characterName"],
            scopes=data.get("scopes", ""),
            owner_hash=data["ownerHash"],
            access_token=data["accessToken"],
            refresh_token=data["refreshToken"],
            token_type=data.get("tokenType", "Character"),
            expires_at=data.get("expiresAt"),
        )
