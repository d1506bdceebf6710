"""Persistence helpers for the credential fields of a user record."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import AccountError, ErrorKind
from db.errors import conflicting_user_column, is_unique_violation
from models import User, UserPublic

_CONFLICT_MESSAGES = {
    "username": "Username is already taken",
    "email": "Email is already in use",
}


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _conflict(exc: IntegrityError) -> AccountError:
    column = conflicting_user_column(exc)
    return AccountError(ErrorKind.CONFLICT, _CONFLICT_MESSAGES.get(column or ""))


async def find_user_by_id(session: AsyncSession, user_id: str) -> User | None:
    return await session.get(User, user_id, populate_existing=True)


async def find_public_user(session: AsyncSession, user_id: str) -> UserPublic | None:
    result = await session.execute(
        select(User).where(_eq(User.id, user_id)).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None
    return UserPublic.model_validate(user)


async def create_user(
    session: AsyncSession,
    *,
    username: str,
    email: str,
    fullname: str,
    password_hash: str,
    avatar_url: str,
    avatar_public_id: str | None = None,
    cover_image_url: str | None = None,
    cover_image_public_id: str | None = None,
    commit: bool = True,
) -> User:
    """Insert a user row.

    With `commit=False` the row is only flushed; the caller owns the
    transaction and must commit or roll back.
    """
    user = User(
        username=username,
        email=email,
        fullname=fullname,
        password_hash=password_hash,
        avatar_url=avatar_url,
        avatar_public_id=avatar_public_id,
        cover_image_url=cover_image_url,
        cover_image_public_id=cover_image_public_id,
    )
    session.add(user)
    try:
        if commit:
            await session.commit()
        else:
            await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise _conflict(exc) from exc
        raise
    return user


async def set_user_fields(session: AsyncSession, user_id: str, **values: Any) -> bool:
    """Atomically set columns on one user row; False when the row is missing.

    Instances already loaded in `session` keep their previous values.
    """
    result = await session.execute(
        update(User)
        .where(_eq(User.id, user_id))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise _conflict(exc) from exc
        raise
    return cast(Any, result).rowcount > 0


async def store_refresh_token(session: AsyncSession, user_id: str, token: str | None) -> bool:
    return await set_user_fields(session, user_id, refresh_token=token)


async def rotate_refresh_token(
    session: AsyncSession,
    user_id: str,
    *,
    expected: str,
    replacement: str,
) -> bool:
    """Replace the stored refresh token only if it still equals `expected`."""
    result = await session.execute(
        update(User)
        .where(_eq(User.id, user_id), _eq(User.refresh_token, expected))
        .values(refresh_token=replacement)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return cast(Any, result).rowcount > 0
