"""Repository layer: plain SQL over the asyncpg pool."""

from .stats import StatsRepository
from .user import UserRepository

__all__ = [
    "StatsRepository",
    "UserRepository",
]
