"""Generic repository base for SQLAlchemy 2.x.

Design decisions
----------------
* Repositories remain thin and persistence-focused:
  - They never implement use cases or domain policies.
  - They never call commit/rollback; Services (via a Unit of Work) own
    transactions.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from sessionauth.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model``, the SQLAlchemy mapped class.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``sessionauth.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, else the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _select(self) -> Select[Any]:
        return select(self.model)

    def get(self, pk: Any) -> E | None:
        """Fetch an entity by primary key.

        :param pk: Primary-key value.
        :returns: Entity or ``None`` when not found.
        """
        return self.session.get(self.model, pk)

    def add(self, instance: E) -> E:
        """Add an entity to the session and flush to obtain its primary key.

        :param instance: Transient entity.
        :returns: The same instance, now persistent.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def delete(self, instance: E) -> None:
        """Delete an entity and flush."""
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.session.flush()
