"""
IdentityService
===============

Aggregate service responsible for the ``User`` directory consumed by the
session lifecycle:

- Uniqueness checks on email and username
- Account creation (password hashed by the model)
- Password verification (no token issuance)
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash

from sessionauth.models.user import User
from sessionauth.repositories.user import UserRepository
from sessionauth.services._shared.base import BaseService
from sessionauth.services._shared.errors import ConflictError, violates
from sessionauth.services._shared.ports import UniqueField
from sessionauth.services.identity.dto import NewUserIn, UserPublicOut, UserRecord


class IdentityService(BaseService):
    """
    Application service for the ``User`` aggregate.

    Every method returns detached DTOs; ORM instances never leave the
    Unit of Work that loaded them.
    """

    # --------------------------------------------------------------------- #
    # Lookups
    # --------------------------------------------------------------------- #

    def user_exists(self, field: UniqueField, value: str) -> bool:
        """
        Check whether ``field`` already holds ``value``.

        :param field: ``"email"`` or ``"username"``.
        :type field: str
        :param value: Candidate value (normalized like the model does).
        :type value: str
        :rtype: bool
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            if field == "email":
                return repo.exists_by_email(value)
            if field == "username":
                return repo.exists_by_username(value)
            raise ValueError(f"Unsupported unique field: {field!r}")

    def find_user_by_username(self, username: str) -> UserRecord | None:
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            return self._to_record(user) if user is not None else None

    def get_user(self, user_id: int) -> UserRecord | None:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            return self._to_record(user) if user is not None else None

    # --------------------------------------------------------------------- #
    # Creation
    # --------------------------------------------------------------------- #

    def create_user(self, fields: NewUserIn) -> UserRecord:
        """
        Persist a new user.

        The caller has already checked uniqueness; the unique constraints
        still decide concurrent registrations.

        :param fields: Validated registration fields.
        :type fields: NewUserIn
        :returns: Snapshot of the stored user.
        :rtype: UserRecord
        :raises ConflictError: When a concurrent insert took the email or username.
        """
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                user = repo.model(
                    username=fields.username,
                    name=fields.name,
                    email=fields.email,
                    password=fields.password,  # model setter hashes
                )
                repo.add(user)
                record = self._to_record(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email"):
                raise ConflictError("User", "email", "Email already exists") from exc
            if violates(exc, "uq_users_username"):
                raise ConflictError("User", "username", "Username already exists") from exc
            raise
        return record

    # --------------------------------------------------------------------- #
    # Passwords & projection
    # --------------------------------------------------------------------- #

    def verify_password(self, plaintext: str, stored_hash: str) -> bool:
        """Return ``True`` when ``plaintext`` matches ``stored_hash``."""
        if not stored_hash:
            return False
        return bool(check_password_hash(stored_hash, plaintext))

    def project_public(self, user: UserRecord) -> UserPublicOut:
        """Strip the password hash for responses."""
        return UserPublicOut(
            id=user.id,
            username=user.username,
            name=user.name,
            email=user.email,
        )

    @staticmethod
    def _to_record(user: User) -> UserRecord:
        return UserRecord(
            id=user.id,
            username=user.username,
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
        )
