from authapi.models.refresh_token import RefreshToken
from authapi.models.user import User, UserRole

__all__ = [
    "RefreshToken",
    "User",
    "UserRole",
]
