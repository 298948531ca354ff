"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between
repositories, adapters, and application services.

The translation to HTTP responses (RFC 7807) is handled by
``sessionauth/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    # PostgreSQL includes the constraint name; SQLite reports "table.column"
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    _, _, column = constraint_name.lower().rpartition("_")
    return f".{column}" in message and "unique" in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them via ``BaseService.translate_exceptions``.
    """


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique attribute is already taken.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param field: Conflicting attribute (``"email"`` or ``"username"``).
    :type field: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    field: str
    detail: str

    def __str__(self) -> str:
        return self.detail


InvalidCredentialsReason = Literal["unknown_username", "wrong_password"]


@dataclass(slots=True)
class InvalidCredentialsError(ServiceError):
    """
    Login failed.

    ``reason`` exists for diagnostics only; callers always see the same
    generic message whichever check failed.
    """

    reason: InvalidCredentialsReason

    def __str__(self) -> str:
        return "Invalid credentials"


@dataclass(slots=True)
class InvalidCredentialError(ServiceError):
    """
    A token failed cryptographic verification.

    Bad signature, malformed input, wrong purpose and expiry all collapse into
    this single error. ``reason`` is logged, never returned to clients.
    """

    reason: str

    def __str__(self) -> str:
        return "Invalid token"


UnauthorizedReason = Literal[
    "missing_token",
    "invalid_token",
    "stale_session",
    "lost_rotation",
    "unknown_subject",
]


@dataclass(slots=True)
class UnauthorizedError(ServiceError):
    """A refresh or access attempt was rejected; no session state changed."""

    reason: UnauthorizedReason

    def __str__(self) -> str:
        return "Unauthorized"


@dataclass(slots=True)
class StoreUnavailableError(ServiceError):
    """
    The session store (or the database behind it) could not be reached.

    :param operation: Store operation that failed (``upsert``, ``find``, ...).
    :type operation: str
    """

    operation: str

    def __str__(self) -> str:
        return f"Session store unavailable during {self.operation}"


@dataclass(slots=True)
class ConfigurationError(ServiceError):
    """
    Invalid start-up configuration (e.g., missing signing secret).

    Raised while building the application, never while serving a request.
    """

    setting: str
    detail: str

    def __str__(self) -> str:
        return f"Invalid configuration for {self.setting}: {self.detail}"
