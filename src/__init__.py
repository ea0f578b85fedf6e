"""
User Cache Service - cache-aside CRUD over Postgres and Redis.

This package serves a single `users` resource over HTTP. Reads go to Redis
first and fall back to Postgres on a miss; updates and deletes are applied to
Postgres first and then propagated to Redis. It includes:

- A coordinator (`UserService`) holding the cache-aside policy
- Postgres and Redis adapters behind small capability protocols
- A FastAPI request adapter and a typer CLI

The coordinator depends only on the protocols, so it runs unchanged against
in-memory fakes in tests.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from src.config import Settings, get_settings
from src.domain import (
    CacheError,
    InternalError,
    NotFoundError,
    StoreError,
    User,
    UserPayload,
    UserServiceError,
    ValidationError,
)
from src.service import UserService, validate_id
from src.stores.abstract import UserCache, UserStore
from src.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "User",
    "UserPayload",
    "UserServiceError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "CacheError",
    "InternalError",
    # Coordination
    "UserService",
    "validate_id",
    # Store protocols
    "UserStore",
    "UserCache",
    # Logging
    "configure_logging",
    "get_logger",
]
