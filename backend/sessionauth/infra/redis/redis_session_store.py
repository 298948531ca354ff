# comments in English; reST docstrings
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import TypeVar

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError, WatchError  # type: ignore[import-untyped]

from sessionauth.services._shared.errors import StoreUnavailableError
from sessionauth.services._shared.ports import RotationResult, SessionRecord, SessionStore

log = logging.getLogger(__name__)

T = TypeVar("T")


def _s(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisSessionStore(SessionStore):
    """
    Redis-backed session store.

    Two keys per session, written together in one ``MULTI``:

    - ``session:u:<subject>`` -> current refresh token
    - ``session:t:<token>``   -> subject (reverse index for logout)

    Multi-key changes run under ``WATCH`` on the subject key (optimistic
    locking) and are retried when a concurrent writer touches it.

    :param r: A Redis client (already connected).
    :param record_ttl: Expiry applied to both keys, normally the refresh TTL.
    :param max_attempts: Bound on optimistic-lock retries for one write.
    """

    r: redis.Redis
    record_ttl: timedelta = timedelta(hours=1)
    max_attempts: int = 32

    # -------------------- helpers --------------------

    @staticmethod
    def _ku(subject: int) -> str:
        return f"session:u:{subject}"

    @staticmethod
    def _kt(token: str) -> str:
        return f"session:t:{token}"

    @property
    def _ttl_seconds(self) -> int:
        return max(1, int(self.record_ttl.total_seconds()))

    def _watched(
        self,
        operation: str,
        keys: Callable[[], list[str]],
        body: Callable[[redis.client.Pipeline], T],
    ) -> T:
        """Run ``body`` under ``WATCH keys()``, retrying on concurrent modification."""
        try:
            for _ in range(self.max_attempts):
                try:
                    with self.r.pipeline() as p:
                        p.watch(*keys())
                        return body(p)
                except WatchError:
                    continue
        except RedisError as exc:
            log.error(
                "Redis session store failure",
                extra={"event": "store_error", "operation": operation},
                exc_info=True,
            )
            raise StoreUnavailableError(operation) from exc
        log.error(
            "Redis optimistic lock kept failing",
            extra={"event": "store_contention", "operation": operation},
        )
        raise StoreUnavailableError(operation)

    # -------------------- API ------------------------

    def upsert(self, subject: int, token: str) -> None:
        ku = self._ku(subject)

        def _body(p: redis.client.Pipeline) -> None:
            previous = _s(p.get(ku))
            p.multi()
            if previous is not None and previous != token:
                p.delete(self._kt(previous))
            p.set(ku, token, ex=self._ttl_seconds)
            p.set(self._kt(token), str(subject), ex=self._ttl_seconds)
            p.execute()

        self._watched("upsert", lambda: [ku], _body)

    def find(self, subject: int, token: str) -> SessionRecord | None:
        try:
            current = _s(self.r.get(self._ku(subject)))
        except RedisError as exc:
            raise StoreUnavailableError("find") from exc
        if current != token:
            return None
        return SessionRecord(subject=subject, token=token)

    def delete(self, token: str) -> bool:
        kt = self._kt(token)
        try:
            owner = _s(self.r.get(kt))
        except RedisError as exc:
            raise StoreUnavailableError("delete") from exc
        if owner is None or not owner.isdigit():
            return False
        ku = self._ku(int(owner))

        def _body(p: redis.client.Pipeline) -> bool:
            current = _s(p.get(ku))
            p.multi()
            p.delete(kt)
            if current == token:
                p.delete(ku)
            p.execute()
            return current == token

        return self._watched("delete", lambda: [ku, kt], _body)

    def rotate(self, subject: int, old_token: str, new_token: str) -> RotationResult:
        ku = self._ku(subject)

        def _body(p: redis.client.Pipeline) -> RotationResult:
            current = _s(p.get(ku))
            if current is None:
                p.unwatch()
                return RotationResult.NOT_FOUND
            if current != old_token:
                p.unwatch()
                return RotationResult.STALE
            p.multi()
            p.set(ku, new_token, ex=self._ttl_seconds)
            p.delete(self._kt(old_token))
            p.set(self._kt(new_token), str(subject), ex=self._ttl_seconds)
            p.execute()
            return RotationResult.OK

        return self._watched("rotate", lambda: [ku], _body)

    def delete_subject(self, subject: int) -> bool:
        ku = self._ku(subject)

        def _body(p: redis.client.Pipeline) -> bool:
            current = _s(p.get(ku))
            if current is None:
                p.unwatch()
                return False
            p.multi()
            p.delete(ku)
            p.delete(self._kt(current))
            p.execute()
            return True

        return self._watched("delete_subject", lambda: [ku], _body)

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except RedisError:
            log.warning("Redis ping failed", extra={"event": "store_ping", "operation": "ping"})
            return False
