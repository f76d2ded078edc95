"""Data models shared by repositories and services."""

from .stats import Stream, StreamViewer, Viewer
from .user import TWITCH_PROVIDER, TwitchUser, User, UserToken

__all__ = [
    "TWITCH_PROVIDER",
    "Stream",
    "StreamViewer",
    "TwitchUser",
    "User",
    "UserToken",
    "Viewer",
]
