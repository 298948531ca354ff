from __future__ import annotations

from typing import Literal, Protocol

from sessionauth.services.identity.dto import NewUserIn, UserPublicOut, UserRecord

UniqueField = Literal["email", "username"]


class IdentityProvider(Protocol):
    """Port for the user directory consumed by the session service."""

    def user_exists(self, field: UniqueField, value: str) -> bool: ...

    def find_user_by_username(self, username: str) -> UserRecord | None: ...

    def get_user(self, user_id: int) -> UserRecord | None: ...

    def create_user(self, fields: NewUserIn) -> UserRecord: ...

    def verify_password(self, plaintext: str, stored_hash: str) -> bool: ...

    def project_public(self, user: UserRecord) -> UserPublicOut: ...
