"""Database helpers."""

from .errors import conflicting_user_column, is_unique_violation
from .session import async_engine, async_session_maker, get_session

__all__ = [
    "async_engine",
    "async_session_maker",
    "conflicting_user_column",
    "get_session",
    "is_unique_violation",
]
