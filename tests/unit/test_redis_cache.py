from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pytest
import redis

from src.domain.errors import CacheError
from src.domain.models import User
from src.stores.abstract import UserCache
from src.stores.redis_cache import RedisUserCache

NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class _FakeRedis:
    """Subset of the redis-py client surface used by the adapter."""

    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}
        self.set_calls: list[tuple[str, Any, dict]] = []
        self.broken = False

    def _check(self) -> None:
        if self.broken:
            raise redis.ConnectionError("Connection refused")

    def get(self, key: str) -> Optional[Any]:
        self._check()
        return self.data.get(key)

    def set(self, key: str, value: Any, **kwargs: Any) -> bool:
        self._check()
        self.set_calls.append((key, value, kwargs))
        self.data[key] = value
        return True

    def delete(self, *keys: str) -> int:
        self._check()
        return sum(1 for key in keys if self.data.pop(key, None) is not None)


def _user(**overrides: Any) -> User:
    fields = {"id": 1, "created_at": NOW, "updated_at": NOW, "name": "Alice"}
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def fake_redis() -> _FakeRedis:
    return _FakeRedis()


@pytest.fixture
def cache(fake_redis: _FakeRedis) -> RedisUserCache:
    return RedisUserCache(fake_redis, key_prefix="user:")


def test_adapter_satisfies_protocol(cache: RedisUserCache) -> None:
    assert isinstance(cache, UserCache)


def test_set_stores_wire_json_under_prefixed_key_without_expiry(
    cache: RedisUserCache, fake_redis: _FakeRedis
) -> None:
    cache.set("1", _user())

    key, value, kwargs = fake_redis.set_calls[0]
    assert key == "user:1"
    assert kwargs == {}
    payload = json.loads(value)
    assert payload["ID"] == 1
    assert payload["name"] == "Alice"
    assert payload["DeletedAt"] is None


def test_get_returns_user_for_present_key(cache: RedisUserCache) -> None:
    cache.set("1", _user())

    assert cache.get("1") == _user()


def test_get_accepts_bytes_values(cache: RedisUserCache, fake_redis: _FakeRedis) -> None:
    fake_redis.data["user:1"] = _user().to_json().encode("utf-8")

    assert cache.get("1").name == "Alice"


def test_get_missing_key_is_none_not_error(cache: RedisUserCache) -> None:
    assert cache.get("404") is None


def test_get_undecodable_value_is_cache_error(
    cache: RedisUserCache, fake_redis: _FakeRedis
) -> None:
    fake_redis.data["user:1"] = "{not a user"

    with pytest.raises(CacheError):
        cache.get("1")


def test_delete_is_idempotent(cache: RedisUserCache, fake_redis: _FakeRedis) -> None:
    cache.set("1", _user())

    cache.delete("1")
    cache.delete("1")

    assert fake_redis.data == {}


@pytest.mark.parametrize(
    "call",
    [
        lambda c: c.get("1"),
        lambda c: c.set("1", _user()),
        lambda c: c.delete("1"),
    ],
)
def test_transport_failures_raise_cache_error(
    cache: RedisUserCache, fake_redis: _FakeRedis, call
) -> None:
    fake_redis.broken = True

    with pytest.raises(CacheError) as excinfo:
        call(cache)
    assert isinstance(excinfo.value.__cause__, redis.ConnectionError)
