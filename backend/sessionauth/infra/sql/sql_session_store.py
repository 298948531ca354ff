"""SQL adapter for :class:`~sessionauth.services._shared.ports.SessionStore`."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sessionauth.services._shared.errors import NotFoundError, StoreUnavailableError
from sessionauth.services._shared.ports import RotationResult, SessionRecord, SessionStore
from sessionauth.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

T = TypeVar("T")


class SqlSessionStore(SessionStore):
    """
    Session records in the ``refresh_tokens`` table.

    Each operation runs in its own Unit of Work and issues one conditional
    statement, so the database serializes concurrent writers for a user.

    .. note::
       Requires an active Flask application context (Flask-scoped session).
    """

    def upsert(self, subject: int, token: str) -> None:
        """
        Create or replace the record of ``subject``.

        :raises NotFoundError: When ``subject`` no longer has a user row (the
            foreign key rejects the write).
        """

        def _op() -> None:
            with SQLAlchemyUnitOfWork() as uow:
                uow.refresh_tokens.upsert(subject, token)

        try:
            self._run("upsert", _op)
        except IntegrityError as exc:
            raise NotFoundError("User", subject) from exc

    def find(self, subject: int, token: str) -> SessionRecord | None:
        def _op() -> SessionRecord | None:
            with SQLAlchemyReadOnlyUnitOfWork() as uow:
                row = uow.refresh_tokens.find(subject, token)
                if row is None:
                    return None
                return SessionRecord(subject=row.user_id, token=row.token)

        return self._run("find", _op)

    def delete(self, token: str) -> bool:
        def _op() -> bool:
            with SQLAlchemyUnitOfWork() as uow:
                return uow.refresh_tokens.delete_by_token(token) > 0

        return self._run("delete", _op)

    def rotate(self, subject: int, old_token: str, new_token: str) -> RotationResult:
        def _op() -> RotationResult:
            with SQLAlchemyUnitOfWork() as uow:
                repo = uow.refresh_tokens
                if repo.compare_and_swap(subject, old_token, new_token):
                    return RotationResult.OK
                # Lost or nothing to swap; tell the two apart for diagnostics.
                if repo.get_by_user(subject) is None:
                    return RotationResult.NOT_FOUND
                return RotationResult.STALE

        return self._run("rotate", _op)

    def delete_subject(self, subject: int) -> bool:
        def _op() -> bool:
            with SQLAlchemyUnitOfWork() as uow:
                return uow.refresh_tokens.delete_for_user(subject) > 0

        return self._run("delete_subject", _op)

    def ping(self) -> bool:
        def _op() -> bool:
            with SQLAlchemyReadOnlyUnitOfWork() as uow:
                uow.session.execute(text("SELECT 1"))
            return True

        try:
            return self._run("ping", _op)
        except StoreUnavailableError:
            return False

    @staticmethod
    def _run(operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            log.error(
                "SQL session store failure",
                extra={"event": "store_error", "operation": operation},
                exc_info=True,
            )
            raise StoreUnavailableError(operation) from exc
