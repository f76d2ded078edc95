"""Services layer - Business logic

Services are initialized with their dependencies and accessed through
dependency injection (see ``twitchdash.core.dependencies``).
"""

from .auth_service import AuthService
from .stats_service import StatsService
from .twitch_api import TokenGrant, TwitchAPIClient
from .twitch_link import LinkResult, TwitchLinkService

__all__ = [
    "AuthService",
    "LinkResult",
    "StatsService",
    "TokenGrant",
    "TwitchAPIClient",
    "TwitchLinkService",
]
