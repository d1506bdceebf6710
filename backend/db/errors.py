"""Classification of integrity errors raised by the users table."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"

# Columns guarded by a unique index, in the order they are reported.
UNIQUE_USER_COLUMNS = ("username", "email")


def _driver_error(error: IntegrityError) -> object | None:
    # asyncpg errors arrive wrapped by SQLAlchemy's DBAPI adapter.
    original = getattr(error, "orig", None)
    return getattr(original, "__cause__", None) or original


def is_unique_violation(error: IntegrityError) -> bool:
    for candidate in (getattr(error, "orig", None), _driver_error(error)):
        sqlstate = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
            return True
    # SQLite reports "UNIQUE constraint failed: users.<column>".
    return "unique constraint" in str(error).lower()


def conflicting_user_column(error: IntegrityError) -> str | None:
    """Name the unique users column behind `error`, if it can be told.

    PostgreSQL reports the index (`ix_users_email`), SQLite the qualified
    column (`users.email`).
    """
    if not is_unique_violation(error):
        return None
    constraint = getattr(_driver_error(error), "constraint_name", None) or ""
    text = f"{constraint} {error}".lower()
    for column in UNIQUE_USER_COLUMNS:
        if f"ix_users_{column}" in text or f"users.{column}" in text:
            return column
    return None


__all__ = [
    "UNIQUE_USER_COLUMNS",
    "UNIQUE_VIOLATION_SQLSTATE",
    "conflicting_user_column",
    "is_unique_violation",
]
