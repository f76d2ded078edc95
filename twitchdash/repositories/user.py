"""Repository for users and user_tokens tables."""

from __future__ import annotations

import logging
from datetime import datetime

import asyncpg

from twitchdash.core.errors import (
    IdentityPersistError,
    TokenPersistError,
    TwitchLinkError,
)
from twitchdash.models import TWITCH_PROVIDER, TwitchUser, User, UserToken

logger = logging.getLogger(__name__)


class UserRepository:
    """Pure SQL operations for users / user_tokens."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    # ==================== Read ====================

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by id."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, email, twitch_username, twitch_id, created_at, updated_at "
                "FROM users WHERE id = $1::uuid",
                user_id,
            )
            if not row:
                return None
            return User(**{**dict(row), "id": str(row["id"])})

    async def get_token(self, user_id: str, provider: str = TWITCH_PROVIDER) -> UserToken | None:
        """Get the stored token for a (user, provider) pair."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT user_id, provider, access_token, refresh_token, expires_at, "
                "created_at, updated_at "
                "FROM user_tokens WHERE user_id = $1::uuid AND provider = $2",
                user_id,
                provider,
            )
            if not row:
                return None
            return UserToken(**{**dict(row), "user_id": str(row["user_id"])})

    # ==================== Twitch link ====================

    async def link_twitch(
        self,
        user_id: str,
        twitch_user: TwitchUser,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> None:
        """Store the Twitch identity and its token in one transaction.

        Raises:
            IdentityPersistError: the users row could not be updated.
            TokenPersistError: the user_tokens upsert failed.
        Either way nothing is committed.
        """
        failure: type[TwitchLinkError] = IdentityPersistError
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    result = await conn.execute(
                        """
                        UPDATE users SET
                            twitch_username = $2,
                            twitch_id       = $3,
                            updated_at      = NOW()
                        WHERE id = $1::uuid
                        """,
                        user_id,
                        twitch_user.login,
                        twitch_user.id,
                    )
                    if result == "UPDATE 0":
                        raise IdentityPersistError("User not found")

                    failure = TokenPersistError
                    await conn.execute(
                        """
                        INSERT INTO user_tokens
                            (user_id, provider, access_token, refresh_token, expires_at)
                        VALUES ($1::uuid, $2, $3, $4, $5)
                        ON CONFLICT (user_id, provider) DO UPDATE SET
                            access_token  = EXCLUDED.access_token,
                            refresh_token = EXCLUDED.refresh_token,
                            expires_at    = EXCLUDED.expires_at,
                            updated_at    = NOW()
                        """,
                        user_id,
                        TWITCH_PROVIDER,
                        access_token,
                        refresh_token,
                        expires_at,
                    )
        except TwitchLinkError:
            raise
        except Exception as e:
            logger.exception(f"{failure.__name__} for user {user_id}: {type(e).__name__}: {e}")
            raise failure() from e

    async def unlink_twitch(self, user_id: str) -> bool:
        """Clear the Twitch identity and delete its token. Returns False if nothing was linked."""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                result = await conn.execute(
                    """
                    UPDATE users SET
                        twitch_username = NULL,
                        twitch_id       = NULL,
                        updated_at      = NOW()
                    WHERE id = $1::uuid AND twitch_id IS NOT NULL
                    """,
                    user_id,
                )
                await conn.execute(
                    "DELETE FROM user_tokens WHERE user_id = $1::uuid AND provider = $2",
                    user_id,
                    TWITCH_PROVIDER,
                )
        return result != "UPDATE 0"
