"""
Redis client factory for the user cache service.

Creates the redis-py client handed to `RedisUserCache` and verifies the
connection once at startup, retrying transient failures with tenacity.
"""

from __future__ import annotations

from typing import Optional

import redis
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import Settings, get_settings
from src.utils.logging import get_logger

log = get_logger(__name__)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((redis.ConnectionError, redis.TimeoutError)),
    reraise=True,
)
def _ping(client: redis.Redis) -> None:
    client.ping()


def create_redis_client(settings: Optional[Settings] = None, verify: bool = True) -> redis.Redis:
    """
    Build a Redis client from settings.

    Responses are decoded to str so cached values can be fed straight into
    `User.from_json`. With `verify`, the server is pinged (with retry) before
    the client is returned.
    """
    settings = settings or get_settings()
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password or None,
        db=settings.redis_db,
        decode_responses=True,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )
    if verify:
        try:
            _ping(client)
        except Exception:
            client.close()
            raise
        log.info(
            "Redis client connected",
            extra={"redis_host": settings.redis_host, "redis_port": settings.redis_port},
        )
    return client


__all__ = ["create_redis_client"]
