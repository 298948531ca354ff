"""DTOs for SessionService (register / login / logout / refresh)."""

from __future__ import annotations

from dataclasses import dataclass

from sessionauth.services.identity.dto import UserPublicOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param username: Public handle (3-50 chars).
    :type username: str
    :param name: Display name (up to 30 chars).
    :type name: str
    :param email: Login email.
    :type email: str
    :param password: Raw password, already checked against the password policy.
    :type password: str
    """

    username: str
    name: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param username: Username to authenticate.
    :type username: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    username: str
    password: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Refresh token presented by the client, if any.
    :type refresh_token: str | None
    """

    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT, ``None`` when the cookie is absent.
    :type refresh_token: str | None
    """

    refresh_token: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Result of a session operation, handed to the delivery layer.

    :param user: Public projection of the user, ``None`` after logout.
    :param authenticated: Whether the caller now holds a session.
    :param tokens: Token pair to deliver, ``None`` when cookies must be cleared.
    :param status: HTTP status the transport should answer with.
    """

    user: UserPublicOut | None
    authenticated: bool
    tokens: TokenPairOut | None = None
    status: int = 200
