"""
Domain package for the user cache service.

Exports the record models and the error taxonomy shared by the adapters,
the coordinator, and the HTTP layer. Keep this package free of I/O.
"""

from src.domain.errors import (
    CacheError,
    InternalError,
    NotFoundError,
    StoreError,
    UserServiceError,
    ValidationError,
)
from src.domain.models import User, UserPayload

__all__ = [
    "User",
    "UserPayload",
    "UserServiceError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "CacheError",
    "InternalError",
]
