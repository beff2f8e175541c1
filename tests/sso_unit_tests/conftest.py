import base64
import json
import time

import httpx
import pytest


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def encode_access_token(claims: dict) -> str:
    """Unsigned JWT with the given payload; the client never checks signatures."""
    header = _b64url(json.dumps({"alg": "RS256", "kid": "JWT-Signature-Key", "typ": "JWT"}).encode())
    payload = _b64url(json.dumps(claims).encode())
    return f"{header}.{payload}.c2lnbmF0dXJl"


@pytest.fixture
def character_claims():
    return {
        "scp": ["esi-wallet.read_character_wallet.v1", "esi-assets.read_assets.v1"],
        "jti": "998e12c7-3241-43c5-8355-2c48822e0a1b",
        "kid": "JWT-Signature-Key",
        "sub": "CHARACTER:EVE:2112625428",
        "azp": "my3rdpartyclientid",
        "tenant": "tranquility",
        "tier": "live",
        "region": "world",
        "aud": "EVE Online",
        "name": "CCP Zoetrope",
        "owner": "lWvPIg7tzsdpOlvfhIRWkSzVyXs=",
        "exp": int(time.time()) + 1199,
        "iss": "login.eveonline.com",
    }


@pytest.fixture
def access_token(character_claims):
    return encode_access_token(character_claims)


@pytest.fixture
def token_response(access_token):
    return {
        "access_token": access_token,
        "expires_in": 1199,
        "token_type": "Bearer",
        "refresh_token": "gEy...fM0",
    }


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def mock_transport_factory(recorded_requests):
    """Build an httpx client whose responses come from a handler."""
    def factory(handler):
        def record(request: httpx.Request):
            recorded_requests.append(request)
            return handler(request)

        return httpx.Client(transport=httpx.MockTransport(record))

    return factory
