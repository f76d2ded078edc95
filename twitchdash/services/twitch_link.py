"""Twitch account linking workflow.

Turns a one-time authorization code into a linked Twitch identity plus a
stored token for the signed-in dashboard user. The steps run in a fixed
order and each one depends on the previous step's output:

1. validate the code
2. resolve the session user
3. exchange the code for tokens
4. fetch the identity that owns the new token
5. + 6. store identity and token together

Every exit is a ``LinkResult``: either the linked ``TwitchUser`` or exactly
one ``TwitchLinkError``. Unexpected exceptions are logged and reported as
the generic ``TwitchLinkError``. Nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from twitchdash.core.errors import MissingCodeError, TwitchLinkError, UnauthenticatedError
from twitchdash.models import TwitchUser

from .twitch_api import TwitchAPIClient

logger = logging.getLogger(__name__)


class TwitchLinkStore(Protocol):
    """Persistence needed by the workflow (implemented by ``UserRepository``)."""

    async def link_twitch(
        self,
        user_id: str,
        twitch_user: TwitchUser,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> None: ...


@dataclass
class LinkResult:
    """Outcome of one linking attempt."""

    twitch_user: TwitchUser | None = None
    error: TwitchLinkError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class TwitchLinkService:
    """Run the linking workflow for one callback request"""

    def __init__(self, twitch_api: TwitchAPIClient, store: TwitchLinkStore) -> None:
        self.twitch_api = twitch_api
        self.store = store

    async def link(self, code: str | None, user_id: str | None) -> LinkResult:
        """Link the Twitch account that issued ``code`` to ``user_id``.

        ``user_id`` is the already-resolved session user, or None when the
        request carried no valid session.
        """
        try:
            if not code:
                raise MissingCodeError()
            if not user_id:
                raise UnauthenticatedError()

            grant = await self.twitch_api.exchange_code(code)
            twitch_user = await self.twitch_api.get_authenticated_user(grant.access_token)

            expires_at = datetime.now(UTC) + timedelta(seconds=grant.expires_in)
            await self.store.link_twitch(
                user_id,
                twitch_user,
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                expires_at=expires_at,
            )
        except TwitchLinkError as e:
            logger.error(f"Twitch link failed for user {user_id}: {type(e).__name__}: {e.message}")
            return LinkResult(error=e)
        except Exception as e:
            logger.exception(f"Unexpected error linking Twitch for user {user_id}: {e}")
            return LinkResult(error=TwitchLinkError())

        logger.info(f"Linked Twitch {twitch_user.login} ({twitch_user.id}) to user {user_id}")
        return LinkResult(twitch_user=twitch_user)
