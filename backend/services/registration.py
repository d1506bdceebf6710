"""Account registration with compensation of uploaded media."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from sqlalchemy.ext.asyncio import AsyncSession

from core import AccountError, ErrorKind, hash_password_async
from models import User, UserPublic

from .auth.credential_store import create_user, find_public_user
from .auth.identity_resolution import (
    ensure_field_lengths,
    normalize_email,
    normalize_username,
    registration_conflict_exists,
)
from .media import AVATAR_FOLDER, COVER_IMAGE_FOLDER, MediaUploadCoordinator, UploadedMedia

logger = logging.getLogger(__name__)

CreateUserFn = Callable[..., Awaitable[User]]
LoadPublicUserFn = Callable[[AsyncSession, str], Awaitable[UserPublic | None]]


@dataclass(frozen=True, slots=True)
class RegistrationForm:
    fullname: str | None
    email: str | None
    username: str | None
    password: str | None
    avatar_path: Path | None = None
    cover_image_path: Path | None = None


class RegistrationWorkflow:
    """Validate, upload media, and create a user as one unit.

    Uploaded media is tracked in order; if the user record cannot be created
    or read back, it is removed from the object store in reverse order before
    the error is raised. Staged local files are discarded on every exit.
    """

    def __init__(
        self,
        session: AsyncSession,
        media: MediaUploadCoordinator,
        *,
        create_user_fn: CreateUserFn = create_user,
        load_public_user_fn: LoadPublicUserFn = find_public_user,
    ) -> None:
        self._session = session
        self._media = media
        self._create_user = create_user_fn
        self._load_public_user = load_public_user_fn

    async def register(self, form: RegistrationForm) -> UserPublic:
        try:
            return await self._register(form)
        finally:
            self._media.discard(form.avatar_path, form.cover_image_path)

    async def _register(self, form: RegistrationForm) -> UserPublic:
        fullname = (form.fullname or "").strip()
        raw_email = (form.email or "").strip()
        raw_username = (form.username or "").strip()
        password = form.password or ""
        if not (fullname and raw_email and raw_username and password.strip()):
            raise AccountError(ErrorKind.MISSING_FIELDS)

        username = normalize_username(raw_username)
        email = normalize_email(raw_email)
        if "@" in username:
            raise AccountError(ErrorKind.INVALID_FIELDS, "Username cannot contain '@'")
        ensure_field_lengths(username=username, email=email, fullname=fullname)

        if await registration_conflict_exists(self._session, username=username, email=email):
            raise AccountError(ErrorKind.CONFLICT)

        if form.avatar_path is None:
            raise AccountError(ErrorKind.MISSING_AVATAR)

        uploaded: list[UploadedMedia] = []
        avatar = await self._upload(form.avatar_path, AVATAR_FOLDER, uploaded)
        cover_image = None
        if form.cover_image_path is not None:
            cover_image = await self._upload(form.cover_image_path, COVER_IMAGE_FOLDER, uploaded)

        try:
            # Flushed only: the row becomes visible once the re-read succeeds.
            user = await self._create_user(
                self._session,
                username=username,
                email=email,
                fullname=fullname,
                password_hash=await hash_password_async(password),
                avatar_url=avatar.url,
                avatar_public_id=avatar.external_id,
                cover_image_url=cover_image.url if cover_image else None,
                cover_image_public_id=cover_image.external_id if cover_image else None,
                commit=False,
            )
            created = await self._load_public_user(self._session, user.id)
            if created is None:
                raise AccountError(ErrorKind.CREATION_FAILED)
            await self._session.commit()
        except AccountError:
            await self._session.rollback()
            await self._unwind(uploaded)
            raise
        except Exception as exc:
            await self._session.rollback()
            await self._unwind(uploaded)
            logger.error("User creation failed", extra={"username": username}, exc_info=exc)
            raise AccountError(
                ErrorKind.CREATION_FAILED,
                "Something went wrong while registering the user and images were deleted",
            ) from exc

        logger.info("User registered", extra={"user_id": created.id})
        return created

    async def _upload(
        self,
        local_path: Path,
        folder: str,
        uploaded: list[UploadedMedia],
    ) -> UploadedMedia:
        try:
            media = await self._media.upload(local_path, folder=folder)
        except Exception as exc:
            await self._unwind(uploaded)
            raise AccountError(ErrorKind.UPLOAD_FAILED) from exc
        if media is None:
            await self._unwind(uploaded)
            raise AccountError(ErrorKind.UPLOAD_FAILED)
        uploaded.append(media)
        return media

    async def _unwind(self, uploaded: list[UploadedMedia]) -> None:
        while uploaded:
            media = uploaded.pop()
            if await self._media.remove(media.external_id):
                logger.info(
                    "Removed orphaned media after failed registration",
                    extra={"object_key": media.external_id},
                )
