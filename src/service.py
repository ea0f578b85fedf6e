"""
Cache-aside coordinator for user records.

`UserService` is the only component with business rules. It validates input
before any I/O, reads through the cache on miss, writes the store before the
cache on update/delete, and maps adapter failures onto the error taxonomy in
`src.domain.errors`.

Usage:
    from src.service import UserService

    service = UserService(store=PostgresUserStore(pool), cache=RedisUserCache(client))
    user = service.get_user("1")

Concurrency: the service keeps no mutable state and takes no locks, so one
instance is shared by all request threads. Two concurrent updates of the same
id can interleave their store-write/cache-write pairs; the store keeps the
last committed name while the cache keeps whichever `set` landed last. That
window closes on the next update or delete of the id.
"""

from __future__ import annotations

import re
from typing import List, Union

from src.domain.errors import (
    CacheError,
    InternalError,
    StoreError,
    ValidationError,
)
from src.domain.models import User, UserPayload
from src.stores.abstract import UserCache, UserStore, cache_key
from src.utils.logging import get_logger

log = get_logger(__name__)

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
# Upper bound of the BIGSERIAL id column.
MAX_USER_ID = 2**63 - 1


def validate_id(raw_id: Union[str, int, None]) -> int:
    """
    Parse a user id from a request path segment.

    Accepts a positive int or its decimal string form.

    Raises
    ------
    ValidationError
        If the id is missing, not an integer, or outside 1..2**63-1.
    """
    if raw_id is None or raw_id == "":
        raise ValidationError("ID is required")
    if isinstance(raw_id, bool):
        raise ValidationError("invalid ID format")
    if isinstance(raw_id, int):
        user_id = raw_id
    elif isinstance(raw_id, str) and _ID_PATTERN.fullmatch(raw_id):
        digits = raw_id.lstrip("+-").lstrip("0") or "0"
        if len(digits) > len(str(MAX_USER_ID)):
            raise ValidationError("invalid ID format")
        user_id = -int(digits) if raw_id.startswith("-") else int(digits)
    else:
        raise ValidationError("invalid ID format")
    if user_id <= 0 or user_id > MAX_USER_ID:
        raise ValidationError("invalid ID format")
    return user_id


def validate_payload(payload: UserPayload) -> str:
    """Return the payload name, rejecting empty or whitespace-only names."""
    if payload is None or not payload.name or not payload.name.strip():
        raise ValidationError("Name is required")
    return payload.name


class UserService:
    """
    Coordinates the durable store and the cache for user CRUD.

    Parameters
    ----------
    store : UserStore
        Source of truth for user records.
    cache : UserCache
        Disposable derived copy keyed by the decimal user id.
    cache_on_create : bool
        Populate the cache with the stored record on create. Off by default,
        so the first read populates it.
    strict_cache_populate : bool
        Treat a failed cache populate (after a successful store read or
        create) as an `InternalError`. Off by default: the failure is logged
        and the store value is returned.
    """

    def __init__(
        self,
        store: UserStore,
        cache: UserCache,
        cache_on_create: bool = False,
        strict_cache_populate: bool = False,
    ) -> None:
        self.store = store
        self.cache = cache
        self.cache_on_create = cache_on_create
        self.strict_cache_populate = strict_cache_populate

    def _populate(self, user: User, operation: str) -> None:
        """Best-effort cache fill after the store produced `user`."""
        key = cache_key(user.id)
        try:
            self.cache.set(key, user)
        except CacheError as exc:
            if self.strict_cache_populate:
                raise InternalError("Failed to store user in cache") from exc
            log.warning(
                "[CACHE POPULATE FAILED] serving store value",
                extra={"user_id": user.id, "operation": operation, "error": exc.message},
            )
            return
        log.info("[CACHE SET]", extra={"user_id": user.id, "cache_key": key, "operation": operation})

    def create_user(self, payload: UserPayload) -> User:
        """
        Persist a new user and return it with its assigned id and timestamps.
        """
        name = validate_payload(payload)
        try:
            user = self.store.create_user(name)
        except StoreError as exc:
            raise InternalError("Failed to create user") from exc
        log.info("[CREATE] user stored", extra={"user_id": user.id})
        if self.cache_on_create:
            self._populate(user, "create")
        return user

    def get_user(self, raw_id: Union[str, int]) -> User:
        """
        Read-through lookup: cache first, store on miss, then populate.

        A cache hit is returned without consulting the store.
        """
        user_id = validate_id(raw_id)
        key = cache_key(user_id)
        try:
            cached = self.cache.get(key)
        except CacheError as exc:
            raise InternalError("Failed to retrieve user from cache") from exc
        if cached is not None:
            log.info("[CACHE HIT]", extra={"user_id": user_id, "cache_key": key})
            return cached

        log.info("[CACHE MISS] checking database", extra={"user_id": user_id, "cache_key": key})
        try:
            user = self.store.get_user(user_id)
        except StoreError as exc:
            raise InternalError("Failed to retrieve user") from exc
        self._populate(user, "read")
        return user

    def list_users(self) -> List[User]:
        """
        Return all visible users straight from the store; the cache is bypassed.

        An empty list is the "no content" outcome, not an error.
        """
        try:
            users = self.store.list_users()
        except StoreError as exc:
            raise InternalError("Failed to retrieve users") from exc
        if not users:
            log.info("[LIST] no users found")
        return users

    def update_user(self, raw_id: Union[str, int], payload: UserPayload) -> User:
        """
        Rename a user in the store, then overwrite its cache entry.

        The cache is only written after the store confirmed the update.
        """
        user_id = validate_id(raw_id)
        name = validate_payload(payload)
        try:
            user = self.store.update_user(user_id, name)
        except StoreError as exc:
            raise InternalError("Failed to update user") from exc

        key = cache_key(user_id)
        try:
            self.cache.set(key, user)
        except CacheError as exc:
            log.warning(
                "[CONSISTENCY WINDOW] store updated, cache write failed",
                extra={"user_id": user_id, "operation": "update", "error": exc.message},
            )
            raise InternalError("Failed to update user in cache") from exc
        log.info("[UPDATE] store and cache written", extra={"user_id": user_id, "cache_key": key})
        return user

    def delete_user(self, raw_id: Union[str, int]) -> None:
        """
        Soft-delete a user in the store, then invalidate its cache entry.
        """
        user_id = validate_id(raw_id)
        try:
            self.store.delete_user(user_id)
        except StoreError as exc:
            raise InternalError("Failed to delete user") from exc

        key = cache_key(user_id)
        try:
            self.cache.delete(key)
        except CacheError as exc:
            log.warning(
                "[CONSISTENCY WINDOW] store deleted, cache invalidation failed",
                extra={"user_id": user_id, "operation": "delete", "error": exc.message},
            )
            raise InternalError("Failed to delete user from cache") from exc
        log.info("[DELETE] store deleted and cache invalidated", extra={"user_id": user_id})


__all__ = ["UserService", "validate_id", "validate_payload"]
