"""
Stores package for the user cache service.

This module re-exports the store/cache protocols and the concrete Postgres
and Redis adapters so downstream code can import from `src.stores` directly.
"""

from src.stores.abstract import (
    AbstractUserCache,
    AbstractUserStore,
    UserCache,
    UserStore,
    cache_key,
)
from src.stores.postgres import PostgresUserStore
from src.stores.redis_cache import RedisUserCache

__all__ = [
    # Abstracts
    "AbstractUserCache",
    "AbstractUserStore",
    "UserCache",
    "UserStore",
    "cache_key",
    # Concrete adapters
    "PostgresUserStore",
    "RedisUserCache",
]
