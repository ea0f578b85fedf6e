"""
Abstract store interfaces for the user cache service.

The coordinator depends only on these capability protocols, so it can run
against the Postgres/Redis adapters in production and against in-memory
fakes in tests. Class-based adapters may subclass the ABC helpers to get
the interface checked at instantiation time.
"""

from __future__ import annotations

import abc
from typing import List, Optional, Protocol, runtime_checkable

from src.domain.models import User


def cache_key(user_id: int) -> str:
    """Cache key for a user id. Adapters may namespace it further."""
    return str(user_id)


@runtime_checkable
class UserStore(Protocol):
    """
    Durable store of user records, the single source of truth.

    Lookups and mutations only see rows that are not soft-deleted.
    Implementations raise `NotFoundError` for absent ids and `StoreError`
    for every other failure.
    """

    def create_user(self, name: str) -> User:
        """
        Persist a new user and return it with its assigned id and timestamps.
        """
        ...

    def get_user(self, user_id: int) -> User:
        """
        Fetch one visible user.

        Raises
        ------
        NotFoundError
            If no visible row matches `user_id`.
        """
        ...

    def list_users(self) -> List[User]:
        """Return all visible users; an empty list is not an error."""
        ...

    def update_user(self, user_id: int, name: str) -> User:
        """
        Rename an existing user and return the row as stored after the write.

        The existence check happens before the mutation.
        """
        ...

    def delete_user(self, user_id: int) -> None:
        """Soft-delete an existing user."""
        ...


@runtime_checkable
class UserCache(Protocol):
    """
    Key-value cache of user records, a disposable derived copy.

    A missing key is never an error: `get` returns None and `delete` is
    idempotent. Only transport and serialization failures raise `CacheError`.
    """

    def get(self, key: str) -> Optional[User]:
        ...

    def set(self, key: str, user: User) -> None:
        """Store `user` under `key` with no expiration."""
        ...

    def delete(self, key: str) -> None:
        ...


class AbstractUserStore(abc.ABC):
    """
    Optional ABC helper for class-based store implementations.
    """

    @abc.abstractmethod
    def create_user(self, name: str) -> User:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def get_user(self, user_id: int) -> User:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list_users(self) -> List[User]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def update_user(self, user_id: int, name: str) -> User:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete_user(self, user_id: int) -> None:  # pragma: no cover - interface only
        raise NotImplementedError


class AbstractUserCache(abc.ABC):
    """
    Optional ABC helper for class-based cache implementations.
    """

    @abc.abstractmethod
    def get(self, key: str) -> Optional[User]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def set(self, key: str, user: User) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, key: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = [
    "cache_key",
    "UserStore",
    "UserCache",
    "AbstractUserStore",
    "AbstractUserCache",
]
