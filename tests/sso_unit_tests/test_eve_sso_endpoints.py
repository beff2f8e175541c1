"""
Tests for the FastAPI login/callback routes
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from eve_sso.client import EveOnlineSSO
from eve_sso.endpoints import create_sso_router


@pytest.fixture
def logins():
    return []


@pytest.fixture
def make_app(mock_transport_factory, logins):
    def factory(handler):
        sso = EveOnlineSSO(
            client_id="my3rdpartyclientid",
            secret_key="secret",
            callback_url="http://testserver/sso/callback",
            scopes=["esi-wallet.read_character_wallet.v1"],
            http_client=mock_transport_factory(handler),
        )
        app = FastAPI()
        app.add_middleware(SessionMiddleware, secret_key="test-session-secret")
        app.include_router(create_sso_router(sso, on_login=logins.append))
        return TestClient(app)

    return factory


def start_login(client):
    response = client.get("/sso/login", follow_redirects=False)
    assert response.status_code == 302
    location = response.headers["location"]
    return location, parse_qs(urlparse(location).query)["state"][0]


class TestSSOEndpoints:
    def test_login_redirects_to_eve(self, make_app):
        client = make_app(lambda request: httpx.Response(500))

        location, state = start_login(client)

        assert location.startswith("https://login.eveonline.com/v2/oauth/authorize?")
        assert "scope=esi-wallet.read_character_wallet.v1" in location
        assert len(state) == 128

    def test_each_login_gets_new_state(self, make_app):
        client = make_app(lambda request: httpx.Response(500))

        _, first = start_login(client)
        _, second = start_login(client)

        assert first != second

    def test_callback_success(self, make_app, token_response, logins):
        client = make_app(lambda request: httpx.Response(200, json=token_response))
        _, state = start_login(client)

        response = client.get("/sso/callback", params={"code": "authcode", "state": state})

        assert response.status_code == 200
        body = response.json()
        assert body["characterID"] == "2112625428"
        assert body["characterName"] == "CCP Zoetrope"
        assert body["tokenType"] == "Character"
        assert len(logins) == 1
        assert logins[0].owner_hash == "lWvPIg7tzsdpOlvfhIRWkSzVyXs="

        # State is single use
        replay = client.get("/sso/callback", params={"code": "authcode", "state": state})
        assert replay.status_code == 403

    def test_callback_state_mismatch(self, make_app, logins):
        client = make_app(lambda request: httpx.Response(200, json={}))
        start_login(client)

        response = client.get("/sso/callback", params={"code": "authcode", "state": "forged"})

        assert response.status_code == 403
        assert "hijacking" in response.json()["detail"]
        assert logins == []

    def test_callback_without_login(self, make_app):
        client = make_app(lambda request: httpx.Response(200, json={}))

        response = client.get("/sso/callback", params={"code": "authcode", "state": "anything"})

        assert response.status_code == 403

    def test_callback_bad_token_response(self, make_app):
        client = make_app(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))
        _, state = start_login(client)

        response = client.get("/sso/callback", params={"code": "authcode", "state": state})

        assert response.status_code == 502

    def test_callback_transport_error(self, make_app):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = make_app(handler)
        _, state = start_login(client)

        response = client.get("/sso/callback", params={"code": "authcode", "state": state})

        assert response.status_code == 503
        assert "timed out" in response.json()["detail"]

    def test_callback_requires_code_and_state(self, make_app):
        client = make_app(lambda request: httpx.Response(200, json={}))

        assert client.get("/sso/callback", params={"state": "x"}).status_code == 422
        assert client.get("/sso/callback", params={"code": "x"}).status_code == 422
