"""Cookie transport for session tokens."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from flask import Request, Response

from sessionauth.services.session.dto import TokenPairOut


@dataclass(frozen=True, slots=True)
class CookieDelivery:
    """
    Carry token pairs to and from the client as ``HttpOnly`` cookies.

    :param access_name: Cookie name for the access token.
    :param refresh_name: Cookie name for the refresh token.
    :param access_max_age: ``Max-Age`` of the access cookie, in seconds.
    :param refresh_max_age: ``Max-Age`` of the refresh cookie, in seconds.
    :param secure: Emit the ``Secure`` attribute.
    :param samesite: ``SameSite`` policy (``Lax``, ``Strict`` or ``None``).
    """

    access_name: str = "accessToken"
    refresh_name: str = "refreshToken"
    access_max_age: int = 30 * 60
    refresh_max_age: int = 60 * 60
    secure: bool = False
    samesite: str | None = "Lax"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> CookieDelivery:
        return cls(
            access_name=config.get("ACCESS_COOKIE_NAME", "accessToken"),
            refresh_name=config.get("REFRESH_COOKIE_NAME", "refreshToken"),
            access_max_age=int(config.get("ACCESS_COOKIE_MAX_AGE", 30 * 60)),
            refresh_max_age=int(config.get("REFRESH_COOKIE_MAX_AGE", 60 * 60)),
            secure=bool(config.get("COOKIE_SECURE", False)),
            samesite=config.get("COOKIE_SAMESITE") or None,
        )

    def attach(self, response: Response, tokens: TokenPairOut) -> Response:
        """Set both token cookies on ``response``."""
        self._set(response, self.access_name, tokens.access_token, self.access_max_age)
        self._set(response, self.refresh_name, tokens.refresh_token, self.refresh_max_age)
        return response

    def clear(self, response: Response) -> Response:
        """Expire both token cookies on ``response``."""
        for name in (self.access_name, self.refresh_name):
            response.delete_cookie(
                name,
                path="/",
                secure=self.secure,
                httponly=True,
                samesite=self.samesite,
            )
        return response

    def read_access(self, request: Request) -> str | None:
        return request.cookies.get(self.access_name) or None

    def read_refresh(self, request: Request) -> str | None:
        return request.cookies.get(self.refresh_name) or None

    def _set(self, response: Response, name: str, value: str, max_age: int) -> None:
        response.set_cookie(
            name,
            value,
            max_age=max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )
