"""
Postgres-backed durable store for user records.

Rows are soft-deleted through `deleted_at`; every read and mutation filters
on `deleted_at IS NULL`, so deleted users behave exactly like absent ones.
Update and delete lock the row with `SELECT ... FOR UPDATE` in the same
transaction as the write, making the existence check and the mutation atomic.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.errors import NotFoundError, StoreError
from src.domain.models import User
from src.infrastructure.db_factory import apply_statement_timeout
from src.stores.abstract import AbstractUserStore
from src.utils.logging import get_logger

log = get_logger(__name__)

_COLUMNS = "id, created_at, updated_at, deleted_at, name"

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS public.users (
        id BIGSERIAL PRIMARY KEY,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        deleted_at TIMESTAMPTZ NULL,
        name TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_users_deleted_at ON public.users (deleted_at)",
)


def _to_user(row: Optional[Dict[str, Any]]) -> Optional[User]:
    return User.model_validate(row) if row is not None else None


class PostgresUserStore(AbstractUserStore):
    """
    `UserStore` implementation over a psycopg `ConnectionPool`.

    The pool is injected and owned by the caller. Each operation borrows one
    connection and runs in a single transaction, committed when the pool's
    connection context exits cleanly and rolled back otherwise.
    """

    def __init__(self, pool: ConnectionPool, statement_timeout_ms: int = 0) -> None:
        self._pool = pool
        self.statement_timeout_ms = statement_timeout_ms

    @contextmanager
    def _cursor(self, operation: str) -> Generator[psycopg.Cursor, None, None]:
        """Yield a dict-row cursor in a fresh transaction, translating driver errors."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self.statement_timeout_ms)
                    yield cur
        except (psycopg.Error, PoolTimeout) as exc:
            log.exception("Store operation failed", extra={"operation": operation})
            raise StoreError(f"{operation} failed: {exc}") from exc

    def ensure_schema(self) -> None:
        """Create the users table and its index if they do not exist."""
        with self._cursor("ensure_schema") as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        log.info("Users schema ensured")

    def create_user(self, name: str) -> User:
        with self._cursor("create_user") as cur:
            cur.execute(
                f"INSERT INTO public.users (name) VALUES (%s) RETURNING {_COLUMNS};",
                (name,),
            )
            user = _to_user(cur.fetchone())
        if user is None:
            raise StoreError("create_user failed: INSERT returned no row")
        log.info("User created in database", extra={"user_id": user.id})
        return user

    def get_user(self, user_id: int) -> User:
        with self._cursor("get_user") as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM public.users WHERE id = %s AND deleted_at IS NULL;",
                (user_id,),
            )
            user = _to_user(cur.fetchone())
        if user is None:
            log.info("User not found in database", extra={"user_id": user_id})
            raise NotFoundError(f"User {user_id} not found")
        log.debug("User retrieved from database", extra={"user_id": user_id})
        return user

    def list_users(self) -> List[User]:
        with self._cursor("list_users") as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM public.users WHERE deleted_at IS NULL ORDER BY id;"
            )
            rows = cur.fetchall()
        users = [User.model_validate(row) for row in rows]
        log.debug("Users retrieved from database", extra={"count": len(users)})
        return users

    def update_user(self, user_id: int, name: str) -> User:
        with self._cursor("update_user") as cur:
            cur.execute(
                "SELECT id FROM public.users WHERE id = %s AND deleted_at IS NULL FOR UPDATE;",
                (user_id,),
            )
            if cur.fetchone() is None:
                log.info("User not found in database", extra={"user_id": user_id})
                raise NotFoundError(f"User {user_id} not found")
            cur.execute(
                f"UPDATE public.users SET name = %s, updated_at = now() "
                f"WHERE id = %s RETURNING {_COLUMNS};",
                (name, user_id),
            )
            user = _to_user(cur.fetchone())
        if user is None:
            raise StoreError(f"update_user failed: UPDATE of user {user_id} returned no row")
        log.info("User updated in database", extra={"user_id": user_id})
        return user

    def delete_user(self, user_id: int) -> None:
        with self._cursor("delete_user") as cur:
            cur.execute(
                "SELECT id FROM public.users WHERE id = %s AND deleted_at IS NULL FOR UPDATE;",
                (user_id,),
            )
            if cur.fetchone() is None:
                log.info("User not found in database", extra={"user_id": user_id})
                raise NotFoundError(f"User {user_id} not found")
            cur.execute(
                "UPDATE public.users SET deleted_at = now() WHERE id = %s;",
                (user_id,),
            )
        log.info("User soft-deleted in database", extra={"user_id": user_id})


__all__ = ["PostgresUserStore", "SCHEMA_STATEMENTS"]
