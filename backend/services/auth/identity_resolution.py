"""Identity normalization and lookup helpers."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import AccountError, ErrorKind
from models import EMAIL_MAX_LENGTH, FULLNAME_MAX_LENGTH, USERNAME_MAX_LENGTH, User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


_MAX_LENGTHS = {
    "username": USERNAME_MAX_LENGTH,
    "email": EMAIL_MAX_LENGTH,
    "fullname": FULLNAME_MAX_LENGTH,
}


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_username(value: str) -> str:
    return value.strip().lower()


def ensure_field_lengths(**values: str) -> None:
    """Raise INVALID_FIELDS when a value exceeds its users column length."""
    for field, value in values.items():
        limit = _MAX_LENGTHS[field]
        if len(value) > limit:
            raise AccountError(
                ErrorKind.INVALID_FIELDS,
                f"{field.capitalize()} must be at most {limit} characters",
            )


async def registration_conflict_exists(
    session: AsyncSession,
    *,
    username: str,
    email: str,
    exclude_user_id: str | None = None,
) -> bool:
    stmt = select(User.id).where(
        or_(
            _eq(User.username, normalize_username(username)),
            _eq(User.email, normalize_email(email)),
        )
    )
    if exclude_user_id is not None:
        stmt = stmt.where(cast(ColumnElement[bool], User.id != exclude_user_id))
    existing = await session.execute(stmt.limit(1))
    return existing.scalar_one_or_none() is not None


async def resolve_login_user(session: AsyncSession, identifier: str) -> User | None:
    """Find a user by username, or by email when the identifier contains '@'."""
    normalized = identifier.strip().lower()
    if not normalized:
        return None
    column = User.email if "@" in normalized else User.username
    result = await session.execute(select(User).where(_eq(column, normalized)).limit(1))
    return result.scalar_one_or_none()
