"""Dependency injection utilities for FastAPI"""

import logging

import asyncpg
from fastapi import Depends, HTTPException, Request

from twitchdash.core.config import Settings, get_settings
from twitchdash.core.database import get_database_manager
from twitchdash.repositories import StatsRepository, UserRepository
from twitchdash.services import AuthService, StatsService, TwitchAPIClient, TwitchLinkService

logger = logging.getLogger(__name__)


# ============================================
# Service Dependencies
# ============================================


def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    """Get AuthService instance (dependency injection)"""
    return AuthService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.jwt_expire_days,
        audience=settings.jwt_audience,
    )


_twitch_api: TwitchAPIClient | None = None


def get_twitch_api() -> TwitchAPIClient:
    """Get shared TwitchAPIClient singleton (connection reuse)."""
    global _twitch_api
    if _twitch_api is None:
        settings = get_settings()
        _twitch_api = TwitchAPIClient(
            client_id=settings.twitch_client_id,
            client_secret=settings.twitch_client_secret,
            redirect_uri=settings.twitch_redirect_uri,
            timeout=settings.twitch_timeout,
        )
    return _twitch_api


async def close_twitch_api() -> None:
    """Close the shared TwitchAPIClient. Call on app shutdown."""
    global _twitch_api
    if _twitch_api is not None:
        await _twitch_api.close()
        _twitch_api = None


def get_db_pool() -> asyncpg.Pool:
    db_manager = get_database_manager()
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_user_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> UserRepository:
    return UserRepository(pool)


def get_stats_service(pool: asyncpg.Pool = Depends(get_db_pool)) -> StatsService:
    return StatsService(StatsRepository(pool))


def get_twitch_link_service(
    twitch_api: TwitchAPIClient = Depends(get_twitch_api),
) -> TwitchLinkService | None:
    """Linking workflow bound to the DB pool, or None while the DB is down.

    The OAuth callback must answer with a redirect rather than 503, so the
    missing pool is reported to the route instead of raised.
    """
    db_manager = get_database_manager()
    if not db_manager.is_connected:
        return None
    return TwitchLinkService(twitch_api, UserRepository(db_manager.pool))


# ============================================
# Session Dependencies
# ============================================


def get_session_user_id(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Return the signed-in user's id, or None without a valid session cookie"""
    return auth_service.resolve_user_id(request.cookies.get(settings.session_cookie_name))


def get_current_user_id(user_id: str | None = Depends(get_session_user_id)) -> str:
    """Require a session and return users.id"""
    if not user_id:
        logger.warning("Request without a valid session")
        raise HTTPException(status_code=401, detail="Not logged in")
    return user_id
