"""Twitch connection API routes"""

import logging
from datetime import datetime
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import BaseModel

from twitchdash.core.config import Settings, get_settings
from twitchdash.core.dependencies import (
    get_current_user_id,
    get_session_user_id,
    get_twitch_api,
    get_twitch_link_service,
    get_user_repository,
)
from twitchdash.core.errors import MissingCodeError
from twitchdash.repositories import UserRepository
from twitchdash.services import TwitchAPIClient, TwitchLinkService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/twitch", tags=["twitch"])

SETTINGS_PATH = "/settings"


# ============================================
# Response Models
# ============================================


class OAuthURLResponse(BaseModel):
    oauth_url: str
    redirect_uri: str


class ConnectionResponse(BaseModel):
    connected: bool
    twitch_username: str | None = None
    twitch_id: str | None = None
    expires_at: datetime | None = None


class DisconnectResponse(BaseModel):
    message: str


# ============================================
# Helpers
# ============================================


def _settings_redirect(settings: Settings, error: str | None = None) -> RedirectResponse:
    """302 back to the settings page with a success flag or an encoded error message."""
    if error is None:
        query = "connected=true"
    else:
        query = f"error={quote(error, safe='')}"
    return RedirectResponse(url=f"{settings.app_url}{SETTINGS_PATH}?{query}", status_code=302)


# ============================================
# Endpoints
# ============================================


@router.get("/oauth", response_model=OAuthURLResponse)
async def get_twitch_oauth_url(
    user_id: str = Depends(get_current_user_id),
    twitch_api: TwitchAPIClient = Depends(get_twitch_api),
) -> OAuthURLResponse:
    """Get the Twitch authorize URL that starts the linking flow"""
    return OAuthURLResponse(
        oauth_url=twitch_api.generate_oauth_url(),
        redirect_uri=twitch_api.redirect_uri,
    )


# Registered with Twitch as the redirect URI (TWITCH_CALLBACK_PATH)
@router.get("/auth")
async def twitch_auth_callback(
    code: str | None = None,
    user_id: str | None = Depends(get_session_user_id),
    link_service: TwitchLinkService | None = Depends(get_twitch_link_service),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Handle the Twitch OAuth redirect and link the account to the session user"""
    if not code:
        logger.warning("Twitch callback received without a code")
        return JSONResponse({"error": MissingCodeError.default_message}, status_code=400)

    # Check DB readiness here; the callback must redirect, not 503
    if link_service is None:
        logger.error("Database not ready during Twitch callback")
        return _settings_redirect(settings, error="Database not ready")

    result = await link_service.link(code, user_id)
    if result.error is not None:
        return _settings_redirect(settings, error=result.error.message)

    return _settings_redirect(settings)


@router.get("/connection", response_model=ConnectionResponse)
async def get_twitch_connection(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> ConnectionResponse:
    """Report whether the session user has a linked Twitch account"""
    user = await users.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if not user.twitch_connected:
        return ConnectionResponse(connected=False)

    token = await users.get_token(user_id)
    return ConnectionResponse(
        connected=True,
        twitch_username=user.twitch_username,
        twitch_id=user.twitch_id,
        expires_at=token.expires_at if token else None,
    )


@router.delete("/connection", response_model=DisconnectResponse)
async def disconnect_twitch(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> DisconnectResponse:
    """Remove the linked Twitch identity and its stored token"""
    try:
        unlinked = await users.unlink_twitch(user_id)
    except Exception as e:
        logger.exception(f"Failed to disconnect Twitch for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to disconnect Twitch") from None

    if not unlinked:
        raise HTTPException(status_code=404, detail="No Twitch account connected")

    logger.info(f"User {user_id} disconnected Twitch")
    return DisconnectResponse(message="Disconnected from Twitch")
