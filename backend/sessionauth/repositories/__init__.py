"""Persistence-only repositories bound to a Unit of Work session."""

from sessionauth.repositories.base import BaseRepository
from sessionauth.repositories.refresh_token import RefreshTokenRepository
from sessionauth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
