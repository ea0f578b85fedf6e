"""
Redis-backed cache of user records.

Values are the JSON wire form of `User`, stored without expiration under
`<prefix><id>`. A missing key is a normal result (None on get, no-op on
delete); transport and (de)serialization failures raise `CacheError`.
"""

from __future__ import annotations

from typing import Optional

import redis
from pydantic import ValidationError as PydanticValidationError

from src.domain.errors import CacheError
from src.domain.models import User
from src.stores.abstract import AbstractUserCache
from src.utils.logging import get_logger

log = get_logger(__name__)


class RedisUserCache(AbstractUserCache):
    """
    `UserCache` implementation over a redis-py client.

    The client is injected and owned by the caller; it should be created with
    `decode_responses=True` (see `create_redis_client`), although raw bytes
    values are accepted too.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "user:") -> None:
        self._client = client
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[User]:
        redis_key = self._key(key)
        try:
            raw = self._client.get(redis_key)
        except redis.RedisError as exc:
            log.exception("Error retrieving user from cache", extra={"cache_key": redis_key})
            raise CacheError(f"cache get failed for {redis_key}: {exc}") from exc

        if raw is None:
            log.debug("Cache MISS", extra={"cache_key": redis_key})
            return None

        try:
            user = User.from_json(raw)
        except PydanticValidationError as exc:
            log.error("Error decoding cached user", extra={"cache_key": redis_key})
            raise CacheError(f"cached value for {redis_key} is not a valid user") from exc
        log.debug("Cache HIT", extra={"cache_key": redis_key})
        return user

    def set(self, key: str, user: User) -> None:
        redis_key = self._key(key)
        try:
            payload = user.to_json()
        except (TypeError, ValueError) as exc:
            raise CacheError(f"could not serialize user for {redis_key}: {exc}") from exc
        try:
            self._client.set(redis_key, payload)
        except redis.RedisError as exc:
            log.exception("Error storing user in cache", extra={"cache_key": redis_key})
            raise CacheError(f"cache set failed for {redis_key}: {exc}") from exc
        log.debug("User stored in cache", extra={"cache_key": redis_key})

    def delete(self, key: str) -> None:
        redis_key = self._key(key)
        try:
            removed = self._client.delete(redis_key)
        except redis.RedisError as exc:
            log.exception("Error deleting user from cache", extra={"cache_key": redis_key})
            raise CacheError(f"cache delete failed for {redis_key}: {exc}") from exc
        if removed:
            log.debug("User deleted from cache", extra={"cache_key": redis_key})
        else:
            log.debug("Cache delete of absent key", extra={"cache_key": redis_key})


__all__ = ["RedisUserCache"]
