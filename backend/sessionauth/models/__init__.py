from sessionauth.models.refresh_token import RefreshToken
from sessionauth.models.user import User

__all__ = [
    "RefreshToken",
    "User",
]
