"""
sessionauth.services._shared.ports
==================================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token handling, session persistence and the user directory.

Modules
-------
- :mod:`credential_codec`:
    Defines :class:`~.CredentialCodec`: minting and verification of signed tokens.

- :mod:`session_store`:
    Defines :class:`~.SessionStore`, :class:`~.RotationResult` and
    :class:`~.SessionRecord`: the single-active-session persistence contract.

- :mod:`identity_provider`:
    Defines :class:`~.IdentityProvider`: user lookup, creation and password checks.

Concrete adapters (JWT, SQL, Redis) live under ``sessionauth.infra``.
"""

from __future__ import annotations

from .credential_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    CredentialCodec,
    TokenTTLs,
)
from .identity_provider import IdentityProvider, UniqueField
from .session_store import (
    InMemorySessionStore,
    RotationResult,
    SessionRecord,
    SessionStore,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "CredentialCodec",
    "TokenTTLs",
    "IdentityProvider",
    "UniqueField",
    "SessionStore",
    "SessionRecord",
    "RotationResult",
    "InMemorySessionStore",
]
