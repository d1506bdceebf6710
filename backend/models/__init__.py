"""SQLModel models package."""

from .user import (
    EMAIL_MAX_LENGTH,
    FULLNAME_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    User,
    UserPublic,
)

__all__ = [
    "EMAIL_MAX_LENGTH",
    "FULLNAME_MAX_LENGTH",
    "USERNAME_MAX_LENGTH",
    "User",
    "UserPublic",
]
