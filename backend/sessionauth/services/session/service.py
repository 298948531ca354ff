"""
SessionService
==============

Token lifecycle for one logical session per user:

    Anonymous --register/login--> Authenticated --refresh--> Authenticated
    Authenticated --logout / failed refresh--> Anonymous

Collaborators are injected: a :class:`CredentialCodec` mints and verifies
tokens, a :class:`SessionStore` holds the one valid refresh token per user,
and an :class:`IdentityProvider` owns the user directory.
"""

from __future__ import annotations

import logging

from sessionauth.services._shared.base import BaseService, ServiceContext
from sessionauth.services._shared.errors import (
    ConflictError,
    InvalidCredentialError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthorizedError,
)
from sessionauth.services._shared.ports import (
    CredentialCodec,
    IdentityProvider,
    RotationResult,
    SessionStore,
    TokenTTLs,
)
from sessionauth.services.identity.dto import NewUserIn, UserPublicOut
from sessionauth.services.session.dto import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
    TokenPairOut,
)

log = logging.getLogger(__name__)


class SessionService(BaseService):
    """
    Session lifecycle service (register / login / logout / refresh).

    Every successful register, login or refresh leaves exactly one session
    record for the user, holding the refresh token just returned.
    """

    def __init__(
        self,
        *,
        codec: CredentialCodec,
        store: SessionStore,
        identity: IdentityProvider,
        ttls: TokenTTLs | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param codec: Token minting/verification adapter.
        :param store: Session record store (atomic upsert and rotation).
        :param identity: User directory.
        :param ttls: Access/refresh lifetimes.
        """
        super().__init__(ctx=ctx)
        self.codec = codec
        self.store = store
        self.identity = identity
        self.ttls = ttls or TokenTTLs()

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> SessionOut:
        """
        Create an account and open its session.

        Email uniqueness is checked before username; the first collision wins.

        :param dto: Validated registration input.
        :returns: Session with the new user and token pair, status ``201``.
        :raises ConflictError: When the email or username is taken.
        :raises StoreUnavailableError: When the session record cannot be written.
        """
        if self.identity.user_exists("email", dto.email):
            raise ConflictError("User", "email", "Email already exists")
        if self.identity.user_exists("username", dto.username):
            raise ConflictError("User", "username", "Username already exists")

        user = self.identity.create_user(
            NewUserIn(
                username=dto.username,
                name=dto.name,
                email=dto.email,
                password=dto.password,
            )
        )
        tokens = self._issue_pair(user.id)
        self._open_session(user.id, tokens.refresh_token, operation="register")

        log.info("User registered", extra={"event": "register", "subject": user.id})
        return SessionOut(
            user=self.identity.project_public(user),
            authenticated=True,
            tokens=tokens,
            status=201,
        )

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Authenticate credentials and replace any previous session.

        :param dto: Login input.
        :returns: Session with a fresh token pair.
        :raises InvalidCredentialsError: Unknown username or wrong password.
        :raises UnauthorizedError: The user was deleted before the session was
            recorded.
        """
        user = self.identity.find_user_by_username(dto.username)
        if user is None:
            self._log_rejected("login", "unknown_username")
            raise InvalidCredentialsError("unknown_username")
        if not self.identity.verify_password(dto.password, user.password_hash):
            self._log_rejected("login", "wrong_password", subject=user.id)
            raise InvalidCredentialsError("wrong_password")

        tokens = self._issue_pair(user.id)
        self._open_session(user.id, tokens.refresh_token, operation="login")

        log.info("User logged in", extra={"event": "login", "subject": user.id})
        return SessionOut(
            user=self.identity.project_public(user),
            authenticated=True,
            tokens=tokens,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> SessionOut:
        """
        Revoke the presented refresh token. Idempotent.

        Tokens are not verified first: an expired or foreign token simply
        matches no record.
        """
        if dto.refresh_token:
            removed = self.store.delete(dto.refresh_token)
            log.info(
                "Logout",
                extra={"event": "logout", "reason": "revoked" if removed else "no_session"},
            )
        return SessionOut(user=None, authenticated=False)

    # ------------------------------------------------------------------ #
    # Refresh with compare-and-swap rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Rotate the refresh token and emit a new pair.

        Steps
        -----
        1. Verify the refresh token signature, purpose and expiry.
        2. Require the exact token to be the one on record for its subject.
        3. Require the subject to still resolve to a user; otherwise drop
           the orphaned record.
        4. Swap old for new atomically; losing a concurrent swap is a failure.

        :raises UnauthorizedError: On any failed step. No session state is
            changed except the orphan cleanup of step 3.
        """
        token = dto.refresh_token
        if not token:
            self._log_rejected("refresh", "missing_token")
            raise UnauthorizedError("missing_token")

        subject = self._verified_subject(token, purpose="refresh")

        if self.store.find(subject, token) is None:
            self._log_rejected("refresh", "stale_session", subject=subject)
            raise UnauthorizedError("stale_session")

        user = self.identity.get_user(subject)
        if user is None:
            self.store.delete(token)
            self._log_rejected("refresh", "unknown_subject", subject=subject)
            raise UnauthorizedError("unknown_subject")

        tokens = self._issue_pair(subject)
        result = self.store.rotate(subject, token, tokens.refresh_token)
        if result is not RotationResult.OK:
            self._log_rejected("refresh", "lost_rotation", subject=subject)
            raise UnauthorizedError("lost_rotation")

        log.info("Session refreshed", extra={"event": "refresh", "subject": subject})
        return SessionOut(
            user=self.identity.project_public(user),
            authenticated=True,
            tokens=tokens,
        )

    # ------------------------------------------------------------------ #
    # Access guard
    # ------------------------------------------------------------------ #

    def current_user(self, access_token: str | None) -> UserPublicOut:
        """
        Resolve the user behind an access token.

        :raises UnauthorizedError: Missing, invalid or orphaned token.
        """
        if not access_token:
            raise UnauthorizedError("missing_token")
        subject = self._verified_subject(access_token, purpose="access")
        user = self.identity.get_user(subject)
        if user is None:
            self._log_rejected("access", "unknown_subject", subject=subject)
            raise UnauthorizedError("unknown_subject")
        return self.identity.project_public(user)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_pair(self, subject: int) -> TokenPairOut:
        return TokenPairOut(
            access_token=self.codec.issue_access(subject, self.ttls.access),
            refresh_token=self.codec.issue_refresh(subject, self.ttls.refresh),
        )

    def _open_session(self, subject: int, refresh_token: str, *, operation: str) -> None:
        """Record ``refresh_token`` as the only session of ``subject``.

        A user deleted while the request was in flight cannot hold a session.
        """
        try:
            self.store.upsert(subject, refresh_token)
        except NotFoundError as exc:
            self._log_rejected(operation, "unknown_subject", subject=subject)
            raise UnauthorizedError("unknown_subject") from exc

    def _verified_subject(self, token: str, *, purpose: str) -> int:
        verify = self.codec.verify_refresh if purpose == "refresh" else self.codec.verify_access
        try:
            raw_subject = verify(token)
        except InvalidCredentialError as exc:
            self._log_rejected(purpose, "invalid_token")
            raise UnauthorizedError("invalid_token") from exc
        try:
            return self._coerce_user_id(raw_subject)
        except ValueError as exc:
            self._log_rejected(purpose, "invalid_token")
            raise UnauthorizedError("invalid_token") from exc

    @staticmethod
    def _coerce_user_id(subject: int | str) -> int:
        """Ensure the JWT subject can be treated as an integer user id."""
        if isinstance(subject, int):
            return subject
        if isinstance(subject, str) and subject.isdigit():
            return int(subject)
        raise ValueError(f"Invalid token subject: {subject!r}")

    @staticmethod
    def _log_rejected(operation: str, reason: str, *, subject: int | None = None) -> None:
        log.info(
            "Session operation rejected",
            extra={"event": f"{operation}_rejected", "reason": reason, "subject": subject},
        )
