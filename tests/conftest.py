"""
Pytest configuration for the user cache service.

Provides fixtures for:
- In-memory store/cache doubles with call-count instrumentation
- A coordinator and an HTTP test client wired to those doubles
- Settings, Postgres and Redis connections for integration tests
"""

from __future__ import annotations

import os
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Generator, List, Optional, Set, Tuple

import psycopg
import pytest
import redis
from fastapi.testclient import TestClient

from src.api import create_app
from src.config import Settings
from src.domain.errors import CacheError, NotFoundError, StoreError
from src.domain.models import User
from src.service import UserService

# Shared (component, operation) journal used to assert store/cache ordering.
EventLog = List[Tuple[str, str]]


class FakeUserStore:
    """Dict-backed `UserStore` with soft delete and injectable failures."""

    def __init__(self, events: Optional[EventLog] = None) -> None:
        self.rows: Dict[int, User] = {}
        self.calls: Counter = Counter()
        self.fail_on: Set[str] = set()
        self.events = events if events is not None else []
        self._next_id = 1

    def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        self.events.append(("store", operation))
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed: connection refused")

    def _visible(self, user_id: int) -> User:
        user = self.rows.get(user_id)
        if user is None or user.deleted_at is not None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def create_user(self, name: str) -> User:
        self._enter("create_user")
        now = datetime.now(timezone.utc)
        user = User(id=self._next_id, created_at=now, updated_at=now, name=name)
        self.rows[user.id] = user
        self._next_id += 1
        return user

    def get_user(self, user_id: int) -> User:
        self._enter("get_user")
        return self._visible(user_id)

    def list_users(self) -> List[User]:
        self._enter("list_users")
        return [u for _, u in sorted(self.rows.items()) if u.deleted_at is None]

    def update_user(self, user_id: int, name: str) -> User:
        self._enter("update_user")
        current = self._visible(user_id)
        updated = current.model_copy(
            update={"name": name, "updated_at": datetime.now(timezone.utc)}
        )
        self.rows[user_id] = updated
        return updated

    def delete_user(self, user_id: int) -> None:
        self._enter("delete_user")
        current = self._visible(user_id)
        self.rows[user_id] = current.model_copy(
            update={"deleted_at": datetime.now(timezone.utc)}
        )


class FakeUserCache:
    """Dict-backed `UserCache` storing JSON, like the Redis adapter does."""

    def __init__(self, events: Optional[EventLog] = None) -> None:
        self.entries: Dict[str, str] = {}
        self.calls: Counter = Counter()
        self.fail_on: Set[str] = set()
        self.events = events if events is not None else []

    def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        self.events.append(("cache", operation))
        if operation in self.fail_on:
            raise CacheError(f"cache {operation} failed: connection reset")

    def get(self, key: str) -> Optional[User]:
        self._enter("get")
        raw = self.entries.get(key)
        return User.from_json(raw) if raw is not None else None

    def set(self, key: str, user: User) -> None:
        self._enter("set")
        self.entries[key] = user.to_json()

    def delete(self, key: str) -> None:
        self._enter("delete")
        self.entries.pop(key, None)

    def peek(self, key: str) -> Optional[User]:
        """Inspect an entry without counting a call."""
        raw = self.entries.get(key)
        return User.from_json(raw) if raw is not None else None


@pytest.fixture
def events() -> EventLog:
    return []


@pytest.fixture
def fake_store(events: EventLog) -> FakeUserStore:
    return FakeUserStore(events)


@pytest.fixture
def fake_cache(events: EventLog) -> FakeUserCache:
    return FakeUserCache(events)


@pytest.fixture
def service(fake_store: FakeUserStore, fake_cache: FakeUserCache) -> UserService:
    return UserService(store=fake_store, cache=fake_cache)


@pytest.fixture
def client(service: UserService) -> Generator[TestClient, None, None]:
    with TestClient(create_app(service)) as test_client:
        yield test_client


# --------------------------------------------------------------------------- #
# Integration fixtures
# --------------------------------------------------------------------------- #


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "password"),
        db_name=os.getenv("DB_NAME", "users"),
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=int(os.getenv("REDIS_PORT", "6379")),
        redis_password=os.getenv("REDIS_PASSWORD", "redispassword"),
        cache_key_prefix="test-user:",
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def backends_available(test_dsn: str, test_settings: Settings) -> bool:
    """
    Check if both Postgres and Redis are reachable.

    Used to conditionally skip integration tests when either is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        probe = redis.Redis(
            host=test_settings.redis_host,
            port=test_settings.redis_port,
            password=test_settings.redis_password or None,
            socket_connect_timeout=5,
        )
        try:
            probe.ping()
        finally:
            probe.close()
        return True
    except (psycopg.Error, redis.RedisError):
        return False


@pytest.fixture(scope="function")
def clean_backends(
    test_dsn: str, test_settings: Settings, backends_available: bool
) -> Generator[None, None, None]:
    """
    Empty the users table and the test key namespace around each test.
    """
    if not backends_available:
        pytest.skip("Postgres/Redis not available for integration tests")

    def _wipe() -> None:
        with psycopg.connect(test_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("DROP TABLE IF EXISTS public.users;")
        probe = redis.Redis(
            host=test_settings.redis_host,
            port=test_settings.redis_port,
            password=test_settings.redis_password or None,
        )
        try:
            keys = list(probe.scan_iter(match=f"{test_settings.cache_key_prefix}*"))
            if keys:
                probe.delete(*keys)
        finally:
            probe.close()

    _wipe()
    yield
    _wipe()
