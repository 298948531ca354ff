"""
Transaction boundary shared by the identity service and the SQL session store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from sessionauth.repositories import RefreshTokenRepository, UserRepository


class UnitOfWork(ABC):
    """
    One transaction over the ``users`` and ``refresh_tokens`` tables.

    Each session-store operation and each identity use case opens its own
    unit, so a refresh-token write never shares a transaction with the
    request that triggered it.

    Read-write units commit on a clean exit and roll back otherwise.
    Read-only units (``read_only = True``) always roll back and refuse
    ``commit()``.
    """

    read_only: ClassVar[bool] = False

    users: UserRepository
    refresh_tokens: RefreshTokenRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
