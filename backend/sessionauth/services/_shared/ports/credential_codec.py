from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class TokenTTLs:
    """
    Token lifetimes.

    :param access: Access token lifetime.
    :type access: timedelta
    :param refresh: Refresh token lifetime.
    :type refresh: timedelta
    """

    access: timedelta = timedelta(minutes=30)
    refresh: timedelta = timedelta(minutes=60)


class CredentialCodec(Protocol):
    """
    Port for minting and verifying signed, time-bound tokens.

    Access and refresh tokens use independent secrets. ``verify_*`` returns
    the token subject or raises
    :class:`~sessionauth.services._shared.errors.InvalidCredentialError`.
    """

    def issue_access(self, subject: int | str, ttl: timedelta) -> str: ...

    def issue_refresh(self, subject: int | str, ttl: timedelta) -> str: ...

    def verify_access(self, token: str) -> str: ...

    def verify_refresh(self, token: str) -> str: ...
