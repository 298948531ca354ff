"""Refresh-token (session record) repository.

Every write is a single SQL statement so that concurrent requests for the
same user never observe a half-applied read-modify-write.
"""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import CursorResult, delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from sessionauth.models.refresh_token import RefreshToken
from sessionauth.repositories.base import BaseRepository

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken` rows."""

    model = RefreshToken

    def get_by_user(self, user_id: int) -> RefreshToken | None:
        """Return the session record of ``user_id`` if any."""
        stmt = select(RefreshToken).where(RefreshToken.user_id == user_id)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def find(self, user_id: int, token: str) -> RefreshToken | None:
        """Return the record only when both owner and token match."""
        stmt = select(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.token == token,
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def upsert(self, user_id: int, token: str) -> None:
        """Insert or overwrite the record of ``user_id`` in one statement.

        SQLite and PostgreSQL use ``INSERT .. ON CONFLICT (user_id) DO UPDATE``.
        Other dialects fall back to update-then-insert, re-applying the update
        when a concurrent insert wins the unique constraint.
        """
        dialect = self.session.get_bind().dialect.name
        insert_fn = _UPSERT_DIALECTS.get(dialect)
        if insert_fn is not None:
            stmt: Any = insert_fn(RefreshToken).values(user_id=user_id, token=token)
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id"],
                set_={"token": stmt.excluded.token, "updated_at": func.now()},
            )
            self.session.execute(stmt)
            return

        if self._update_token(user_id, token):
            return
        try:
            with self.session.begin_nested():
                self.session.add(RefreshToken(user_id=user_id, token=token))
        except IntegrityError:
            self._update_token(user_id, token)

    def compare_and_swap(self, user_id: int, old_token: str, new_token: str) -> bool:
        """Replace ``old_token`` by ``new_token`` only if it is still on record.

        :returns: ``True`` when exactly one row was swapped.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.token == old_token)
            .values(token=new_token, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return result.rowcount == 1

    def delete_by_token(self, token: str) -> int:
        """Delete the record holding ``token``. :returns: Number of rows removed."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return int(result.rowcount or 0)

    def delete_for_user(self, user_id: int) -> int:
        """Delete the record of ``user_id`` (operator-forced logout)."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return int(result.rowcount or 0)

    def _update_token(self, user_id: int, token: str) -> bool:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .values(token=token, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return bool(result.rowcount)
