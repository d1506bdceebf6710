"""Registration and session endpoints."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_media_coordinator, get_session_manager
from core import AccountError, ErrorKind, api_response
from models import User
from services import MediaUploadCoordinator, RegistrationForm, RegistrationWorkflow
from services.auth import REFRESH_COOKIE, SessionManager, clear_token_cookies, set_token_cookies
from .uploads import stage_optional_upload

router = APIRouter(prefix="/users", tags=["auth"])


class LoginRequest(BaseModel):
    # Either identifier is accepted; email wins when both are sent.
    username: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=128)


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


@router.post("/register")
async def register(
    fullname: str | None = Form(default=None),
    email: str | None = Form(default=None),
    username: str | None = Form(default=None),
    password: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    cover_image: UploadFile | None = File(default=None, alias="coverImage"),
    session: AsyncSession = Depends(get_db),
    media: MediaUploadCoordinator = Depends(get_media_coordinator),
) -> JSONResponse:
    staged: list[Path] = []
    try:
        avatar_path = await stage_optional_upload(avatar)
        if avatar_path is not None:
            staged.append(avatar_path)
        cover_image_path = await stage_optional_upload(cover_image)
    except BaseException:
        media.discard(*staged)
        raise

    workflow = RegistrationWorkflow(session, media)
    user = await workflow.register(
        RegistrationForm(
            fullname=fullname,
            email=email,
            username=username,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
        )
    )
    return api_response(
        status.HTTP_201_CREATED,
        user.model_dump(mode="json"),
        "User registered successfully",
    )


@router.post("/login")
async def login(
    payload: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> JSONResponse:
    identifier = payload.email or payload.username
    if not identifier or not payload.password:
        raise AccountError(ErrorKind.MISSING_FIELDS, "Username or email and password are required")

    result = await manager.login(identifier, payload.password)
    response = api_response(
        status.HTTP_200_OK,
        {
            "user": result.user.model_dump(mode="json"),
            "accessToken": result.access_token,
            "refreshToken": result.refresh_token,
        },
        "User logged in successfully",
    )
    set_token_cookies(
        response,
        result.access_token,
        result.refresh_token,
        config=manager.issuer.config,
    )
    return response


@router.post("/refresh-token")
async def refresh_access_token(
    request: Request,
    payload: RefreshRequest | None = None,
    manager: SessionManager = Depends(get_session_manager),
) -> JSONResponse:
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented and payload is not None:
        presented = payload.refresh_token

    pair = await manager.refresh(presented)
    response = api_response(
        status.HTTP_200_OK,
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "Access token refreshed",
    )
    set_token_cookies(
        response,
        pair.access_token,
        pair.refresh_token,
        config=manager.issuer.config,
    )
    return response


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> JSONResponse:
    await manager.logout(current_user.id)
    response = api_response(status.HTTP_200_OK, {}, "User logged out successfully")
    clear_token_cookies(response, config=manager.issuer.config)
    return response
