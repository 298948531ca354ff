from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol


class RotationResult(Enum):
    """Outcome of an atomic compare-and-swap on a session record."""

    OK = auto()
    NOT_FOUND = auto()
    STALE = auto()


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """
    Read-model for the single active session of a user.

    :ivar subject: Owner user id.
    :ivar token: The refresh token currently on record.
    """

    subject: int
    token: str


class SessionStore(Protocol):
    """
    Durable mapping ``subject -> current refresh token``.

    At most one record exists per subject. Every write is a single atomic
    operation; ``rotate`` is a compare-and-swap. Backend failures raise
    :class:`~sessionauth.services._shared.errors.StoreUnavailableError`.
    """

    def upsert(self, subject: int, token: str) -> None:
        """
        Create or replace the record for ``subject`` (last writer wins).

        :raises NotFoundError: Stores bound to the user table reject a
            ``subject`` without a user row.
        """

    def find(self, subject: int, token: str) -> SessionRecord | None:
        """Return the record only when both ``subject`` and ``token`` match."""

    def delete(self, token: str) -> bool:
        """
        Remove the record holding ``token``.

        :returns: ``True`` if a record was removed. No error when nothing matched.
        """

    def rotate(self, subject: int, old_token: str, new_token: str) -> RotationResult:
        """Replace ``old_token`` with ``new_token`` only if ``old_token`` is on record."""

    def delete_subject(self, subject: int) -> bool:
        """Remove the record of ``subject`` whatever its token (forced logout)."""

    def ping(self) -> bool:
        """Return ``True`` when the backing store answers."""


class InMemorySessionStore(SessionStore):
    """
    In-memory session store.

    .. note::
       A single lock guards every operation; used by unit tests and the
       ``SESSION_STORE=memory`` development mode.
    """

    def __init__(self) -> None:
        self._by_subject: dict[int, str] = {}
        self._lock = threading.Lock()

    def upsert(self, subject: int, token: str) -> None:
        with self._lock:
            self._by_subject[subject] = token

    def find(self, subject: int, token: str) -> SessionRecord | None:
        with self._lock:
            if self._by_subject.get(subject) != token:
                return None
            return SessionRecord(subject=subject, token=token)

    def delete(self, token: str) -> bool:
        with self._lock:
            for subject, current in list(self._by_subject.items()):
                if current == token:
                    del self._by_subject[subject]
                    return True
            return False

    def rotate(self, subject: int, old_token: str, new_token: str) -> RotationResult:
        with self._lock:
            current = self._by_subject.get(subject)
            if current is None:
                return RotationResult.NOT_FOUND
            if current != old_token:
                return RotationResult.STALE
            self._by_subject[subject] = new_token
            return RotationResult.OK

    def delete_subject(self, subject: int) -> bool:
        with self._lock:
            return self._by_subject.pop(subject, None) is not None

    def ping(self) -> bool:
        return True
