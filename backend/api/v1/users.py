"""Authenticated self-service account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_media_coordinator
from core import api_response
from models import EMAIL_MAX_LENGTH, FULLNAME_MAX_LENGTH, User, UserPublic
from services import (
    MediaUploadCoordinator,
    ProfileMediaKind,
    change_password,
    replace_profile_media,
    update_account_details,
)
from .uploads import stage_optional_upload

router = APIRouter(prefix="/users", tags=["users"])


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_password: str | None = Field(default=None, alias="oldPassword", max_length=128)
    new_password: str | None = Field(default=None, alias="newPassword", max_length=128)


class UpdateAccountRequest(BaseModel):
    fullname: str | None = Field(default=None, max_length=FULLNAME_MAX_LENGTH)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LENGTH)


@router.get("/current-user")
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    return api_response(
        status.HTTP_200_OK,
        UserPublic.model_validate(current_user).model_dump(mode="json"),
        "Current user fetched successfully",
    )


@router.post("/change-password")
async def change_current_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await change_password(
        session,
        current_user,
        old_password=payload.old_password,
        new_password=payload.new_password,
    )
    return api_response(status.HTTP_200_OK, {}, "Password changed successfully")


@router.patch("/update-account")
async def update_account(
    payload: UpdateAccountRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    user = await update_account_details(
        session,
        current_user,
        fullname=payload.fullname,
        email=payload.email,
    )
    return api_response(
        status.HTTP_200_OK,
        user.model_dump(mode="json"),
        "Account details updated successfully",
    )


async def _replace_media(
    session: AsyncSession,
    media: MediaUploadCoordinator,
    current_user: User,
    kind: ProfileMediaKind,
    upload: UploadFile | None,
) -> UserPublic:
    local_path = await stage_optional_upload(upload)
    try:
        return await replace_profile_media(
            session,
            media,
            current_user,
            kind=kind,
            local_path=local_path,
        )
    finally:
        media.discard(local_path)


@router.patch("/avatar")
async def update_avatar(
    avatar: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    media: MediaUploadCoordinator = Depends(get_media_coordinator),
) -> JSONResponse:
    user = await _replace_media(session, media, current_user, ProfileMediaKind.AVATAR, avatar)
    return api_response(status.HTTP_200_OK, user.model_dump(mode="json"), "Avatar updated successfully")


@router.patch("/cover-image")
async def update_cover_image(
    cover_image: UploadFile | None = File(default=None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    media: MediaUploadCoordinator = Depends(get_media_coordinator),
) -> JSONResponse:
    user = await _replace_media(
        session,
        media,
        current_user,
        ProfileMediaKind.COVER_IMAGE,
        cover_image,
    )
    return api_response(
        status.HTTP_200_OK,
        user.model_dump(mode="json"),
        "Cover image updated successfully",
    )
