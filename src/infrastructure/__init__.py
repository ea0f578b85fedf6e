"""
Infrastructure package for the user cache service.

Centralizes connectivity concerns (Postgres pool, Redis client). Keep this
layer focused on I/O and resource management, decoupled from the
coordinator's cache-aside logic.
"""

from src.infrastructure.cache_factory import create_redis_client
from src.infrastructure.db_factory import apply_statement_timeout, build_dsn, create_pool

__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
    "create_redis_client",
]
