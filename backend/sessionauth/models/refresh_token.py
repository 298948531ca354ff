"""Persisted session record: the one refresh token currently valid per user."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sessionauth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class RefreshToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Session record keyed uniquely by ``user_id``.

    Fields
    ------
    user_id : int
        Owner; unique, so a user has zero or one active session.
    token : str
        Encoded refresh JWT currently on record. Indexed for logout lookups.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token: Mapped[str] = mapped_column(String(512), nullable=False, index=True)

    __table_args__ = (UniqueConstraint("user_id", name="uq_refresh_tokens_user_id"),)
