"""
Error taxonomy for the user cache service.

Adapters raise `StoreError` / `CacheError` for I/O failures and `NotFoundError`
for missing records. The coordinator raises `ValidationError` before any I/O
and `InternalError` when a cache mutation fails after the store succeeded.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class UserServiceError(Exception):
    """Base exception carrying a stable machine code and a human message."""

    code: str = "SERVICE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(UserServiceError):
    """Malformed or missing input (non-positive id, empty name)."""

    code = "VALIDATION_ERROR"


class NotFoundError(UserServiceError):
    """No visible (non soft-deleted) record matches the id."""

    code = "NOT_FOUND"


class StoreError(UserServiceError):
    """Connectivity, constraint, or write failure in the durable store."""

    code = "STORE_ERROR"


class CacheError(UserServiceError):
    """Transport or serialization failure in the cache. Never raised for a miss."""

    code = "CACHE_ERROR"


class InternalError(UserServiceError):
    """An operation failed after, or independently of, client input being valid."""

    code = "INTERNAL_ERROR"


__all__ = [
    "UserServiceError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "CacheError",
    "InternalError",
]
