"""
Database connection factory utilities for the user cache service.

Builds the Postgres DSN from settings and creates the psycopg connection pool
handed to `PostgresUserStore`. Pools are explicitly constructed and owned by
the caller (the CLI bootstrap); nothing here keeps process-wide state.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import Settings, get_settings
from src.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Bound every statement of the current transaction to `timeout_ms`.

    `set_config(..., true)` is transaction-local, so pooled connections are
    returned without the setting. A non-positive value leaves the server default.
    """
    if timeout_ms <= 0:
        return
    cur.execute("SELECT set_config('statement_timeout', %s, true)", (str(timeout_ms),))


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((PoolTimeout, psycopg.OperationalError)),
    reraise=True,
)
def _open_pool(pool: ConnectionPool, timeout: float) -> None:
    pool.open(wait=True, timeout=timeout)


def create_pool(
    settings: Optional[Settings] = None,
    dsn_override: Optional[str] = None,
    open_timeout: float = 10.0,
) -> ConnectionPool:
    """
    Create and open a synchronous connection pool with automatic retry.

    Parameters
    ----------
    settings : Settings, optional
        Source of the DSN and pool sizing. Defaults to `get_settings()`.
    dsn_override : str, optional
        Explicit DSN, mainly for tests.
    open_timeout : float
        Seconds to wait for `min_size` connections per attempt.

    Returns
    -------
    ConnectionPool
        An opened pool; the caller is responsible for `close()`.

    Raises
    ------
    psycopg_pool.PoolTimeout
        If the pool cannot be filled after all retry attempts.
    """
    settings = settings or get_settings()
    pool = ConnectionPool(
        conninfo=dsn_override or build_dsn(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        open=False,
    )
    try:
        _open_pool(pool, open_timeout)
    except Exception:
        pool.close()
        raise
    log.info(
        "Postgres pool opened",
        extra={
            "db_host": settings.db_host,
            "db_name": settings.db_name,
            "pool_min": settings.db_pool_min_size,
            "pool_max": settings.db_pool_max_size,
        },
    )
    return pool


__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
]
