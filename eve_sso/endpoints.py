"""
EVE SSO API Endpoints

FastAPI routes for the browser side of the login flow. The state is kept
in request.session, so the app must install Starlette's SessionMiddleware.
"""

from typing import Callable, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from eve_sso._logging import verbose_sso_logger
from eve_sso.client import EveOnlineSSO
from eve_sso.exceptions import (
    InvalidStateError,
    SSOTransportError,
    TokenResponseError,
)
from eve_sso.session import STATE_KEY
from eve_sso.tokens import CharacterToken


class CharacterTokenResponse(BaseModel):
    characterID: str
    characterName: str
    scopes: str
    tokenType: str
    ownerHash: str
    refreshToken: str
    accessToken: str
    expiresAt: Optional[int] = None


def create_sso_router(
    sso: EveOnlineSSO,
    on_login: Optional[Callable[[CharacterToken], None]] = None,
    prefix: str = "/sso",
) -> APIRouter:
    """
    Build the login/callback router for an SSO client.

    Args:
        sso: Configured client
        on_login: Called with the CharacterToken after a successful login,
                  e.g. to persist it
        prefix: Route prefix
    """
    router = APIRouter(prefix=prefix, tags=["EVE SSO"])

    # Sync handlers: FastAPI runs them in its threadpool, keeping the
    # blocking token exchange off the event loop.
    @router.get("/login")
    def login(request: Request):
        """Redirect the browser to the EVE login page."""
        # Fresh state per login attempt; the client instance is shared
        login_url = sso.get_login_url(request.session, state=sso.create_state())
        return RedirectResponse(login_url, status_code=status.HTTP_302_FOUND)

    @router.get("/callback", response_model=CharacterTokenResponse)
    def callback(
        request: Request,
        code: str = Query(...),
        state: str = Query(...),
    ):
        """Finish the login and return the character's tokens."""
        try:
            character = sso.handle_callback(code, state, request.session)
        except InvalidStateError as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
        except TokenResponseError as e:
            verbose_sso_logger.error(f"Token exchange failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="EVE SSO returned an unexpected token response",
            )
        except SSOTransportError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Could not reach EVE SSO: {e.message}",
            )

        # One state, one callback
        request.session.pop(STATE_KEY, None)

        if on_login is not None:
            on_login(character)
        return CharacterTokenResponse(**character.to_dict())

    return router
