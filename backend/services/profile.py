"""Self-service account updates: password, details and profile media."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from core import AccountError, ErrorKind, hash_password_async, verify_password_async
from models import User, UserPublic

from .auth.credential_store import find_public_user, set_user_fields
from .auth.identity_resolution import (
    ensure_field_lengths,
    normalize_email,
    registration_conflict_exists,
)
from .media import AVATAR_FOLDER, COVER_IMAGE_FOLDER, MediaUploadCoordinator

logger = logging.getLogger(__name__)


class ProfileMediaKind(str, Enum):
    AVATAR = "avatar"
    COVER_IMAGE = "cover_image"


_MEDIA_FOLDERS = {
    ProfileMediaKind.AVATAR: AVATAR_FOLDER,
    ProfileMediaKind.COVER_IMAGE: COVER_IMAGE_FOLDER,
}


async def _reload(session: AsyncSession, user_id: str) -> UserPublic:
    public_user = await find_public_user(session, user_id)
    if public_user is None:
        raise AccountError(ErrorKind.NOT_FOUND)
    return public_user


async def change_password(
    session: AsyncSession,
    user: User,
    *,
    old_password: str | None,
    new_password: str | None,
) -> None:
    """Replace the password hash and revoke the stored refresh token."""
    if not old_password or not new_password:
        raise AccountError(ErrorKind.MISSING_FIELDS, "Old and new passwords are required")
    if not await verify_password_async(old_password, user.password_hash):
        raise AccountError(ErrorKind.INVALID_CREDENTIALS, "Invalid old password")

    password_hash = await hash_password_async(new_password)
    await set_user_fields(session, user.id, password_hash=password_hash, refresh_token=None)
    logger.info("Password changed", extra={"user_id": user.id})


async def update_account_details(
    session: AsyncSession,
    user: User,
    *,
    fullname: str | None,
    email: str | None,
) -> UserPublic:
    new_fullname = (fullname or "").strip()
    normalized_email = normalize_email(email or "")
    if not new_fullname or not normalized_email:
        raise AccountError(ErrorKind.MISSING_FIELDS, "Fullname and email are required")
    ensure_field_lengths(email=normalized_email, fullname=new_fullname)

    if await registration_conflict_exists(
        session,
        username=user.username,
        email=normalized_email,
        exclude_user_id=user.id,
    ):
        raise AccountError(ErrorKind.CONFLICT, "Email is already in use")

    await set_user_fields(
        session,
        user.id,
        fullname=new_fullname,
        email=normalized_email,
    )
    return await _reload(session, user.id)


async def replace_profile_media(
    session: AsyncSession,
    media: MediaUploadCoordinator,
    user: User,
    *,
    kind: ProfileMediaKind,
    local_path: Path | None,
) -> UserPublic:
    """Upload new avatar/cover media, then drop the media it replaces.

    The new upload is removed again when the user row cannot be updated; the
    previous media is removed only after the update is committed.
    """
    if local_path is None:
        if kind is ProfileMediaKind.AVATAR:
            raise AccountError(ErrorKind.MISSING_AVATAR)
        raise AccountError(ErrorKind.MISSING_FIELDS, "Cover image file is required")

    if kind is ProfileMediaKind.AVATAR:
        previous_public_id = user.avatar_public_id
    else:
        previous_public_id = user.cover_image_public_id

    uploaded = await media.upload(local_path, folder=_MEDIA_FOLDERS[kind])
    if uploaded is None:
        raise AccountError(ErrorKind.UPLOAD_FAILED)

    try:
        await set_user_fields(
            session,
            user.id,
            **{
                f"{kind.value}_url": uploaded.url,
                f"{kind.value}_public_id": uploaded.external_id,
            },
        )
    except Exception:
        await session.rollback()
        await media.remove(uploaded.external_id)
        raise

    if previous_public_id and previous_public_id != uploaded.external_id:
        await media.remove(previous_public_id)
    return await _reload(session, user.id)
