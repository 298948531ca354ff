"""
DTOs for IdentityService.

Data Transfer Objects (DTOs) isolate the service layer from ORM models,
ensuring clear input/output contracts and type safety.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Input DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class NewUserIn:
    """
    Input DTO for user creation.

    :param username: Public handle (unique).
    :type username: str
    :param name: Display name.
    :type name: str
    :param email: Login email (normalized to lowercase by the model).
    :type email: str
    :param password: Raw password to be hashed by the model.
    :type password: str
    """

    username: str
    name: str
    email: str
    password: str


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Detached snapshot of a stored user, including the password hash.

    Never leaves the service layer; use :class:`UserPublicOut` for responses.
    """

    id: int
    username: str
    name: str
    email: str
    password_hash: str


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Output DTO representing public-safe user data.

    :param id: User identifier.
    :type id: int
    :param username: Username.
    :type username: str
    :param name: Display name.
    :type name: str
    :param email: Email address.
    :type email: str
    """

    id: int
    username: str
    name: str
    email: str
