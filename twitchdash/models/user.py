"""Data models for the users and user_tokens tables, plus the Twitch identity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

TWITCH_PROVIDER = "twitch"


@dataclass
class User:
    """Dashboard user record."""

    id: str
    email: str | None = None
    twitch_username: str | None = None
    twitch_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def twitch_connected(self) -> bool:
        return bool(self.twitch_username)


@dataclass
class UserToken:
    """OAuth token record, one per (user_id, provider)."""

    user_id: str
    provider: str
    access_token: str
    refresh_token: str
    expires_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TwitchUser:
    """Identity returned by the Helix users endpoint."""

    id: str
    login: str
