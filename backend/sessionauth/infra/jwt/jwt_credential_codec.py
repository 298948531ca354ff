"""PyJWT adapter for :class:`~sessionauth.services._shared.ports.CredentialCodec`."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from sessionauth.services._shared.errors import ConfigurationError, InvalidCredentialError
from sessionauth.services._shared.ports import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE

log = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("sub", "iat", "exp", "type", "jti")
SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")


@dataclass(frozen=True, slots=True)
class JWTCredentialCodec:
    """
    Mint and verify HMAC-signed JWTs with one secret per token purpose.

    :param access_secret: Key for access tokens.
    :param refresh_secret: Key for refresh tokens. Must differ from ``access_secret``.
    :param algorithm: HMAC algorithm name.

    Claims: ``sub`` (stringified user id), ``iat``, ``exp``, ``type`` and a
    random ``jti`` so two tokens minted in the same second still differ.
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.access_secret:
            raise ConfigurationError("ACCESS_TOKEN_SECRET", "must be a non-empty string")
        if not self.refresh_secret:
            raise ConfigurationError("REFRESH_TOKEN_SECRET", "must be a non-empty string")
        if self.access_secret == self.refresh_secret:
            raise ConfigurationError(
                "REFRESH_TOKEN_SECRET", "must differ from ACCESS_TOKEN_SECRET"
            )
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(
                "JWT_ALGORITHM", f"expected one of {', '.join(SUPPORTED_ALGORITHMS)}"
            )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> JWTCredentialCodec:
        """Build the codec from a Flask config mapping."""
        return cls(
            access_secret=str(config.get("ACCESS_TOKEN_SECRET") or ""),
            refresh_secret=str(config.get("REFRESH_TOKEN_SECRET") or ""),
            algorithm=str(config.get("JWT_ALGORITHM") or "HS256"),
        )

    # -------------------- issue --------------------

    def issue_access(self, subject: int | str, ttl: timedelta) -> str:
        return self._encode(subject, ttl, ACCESS_TOKEN_TYPE, self.access_secret)

    def issue_refresh(self, subject: int | str, ttl: timedelta) -> str:
        return self._encode(subject, ttl, REFRESH_TOKEN_TYPE, self.refresh_secret)

    # -------------------- verify -------------------

    def verify_access(self, token: str) -> str:
        return self._decode(token, ACCESS_TOKEN_TYPE, self.access_secret)

    def verify_refresh(self, token: str) -> str:
        return self._decode(token, REFRESH_TOKEN_TYPE, self.refresh_secret)

    # -------------------- internals ----------------

    def _encode(self, subject: int | str, ttl: timedelta, token_type: str, key: str) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(subject),
            "iat": now,
            "exp": now + ttl,
            "type": token_type,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, key, algorithm=self.algorithm)

    def _decode(self, token: str, expected_type: str, key: str) -> str:
        """
        Verify ``token`` and return its subject.

        :raises InvalidCredentialError: For every failure; ``reason`` is for logs only.
        """
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[self.algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise self._reject("expired", expected_type) from exc
        except jwt.InvalidSignatureError as exc:
            raise self._reject("bad_signature", expected_type) from exc
        except jwt.MissingRequiredClaimError as exc:
            raise self._reject("missing_claim", expected_type) from exc
        except jwt.DecodeError as exc:
            raise self._reject("malformed", expected_type) from exc
        except jwt.InvalidTokenError as exc:
            raise self._reject("invalid_claims", expected_type) from exc

        if claims.get("type") != expected_type:
            raise self._reject("wrong_type", expected_type)
        return str(claims["sub"])

    @staticmethod
    def _reject(reason: str, expected_type: str) -> InvalidCredentialError:
        log.debug(
            "Token rejected",
            extra={"event": f"verify_{expected_type}", "reason": reason},
        )
        return InvalidCredentialError(reason)
