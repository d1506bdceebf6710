"""FastAPI dependencies shared by the v1 routers."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core import AccountError, AuthConfig, ErrorKind, TokenIssuer, get_auth_config
from db.session import get_session
from models import User
from services import MediaUploadCoordinator
from services.auth import ACCESS_COOKIE, SessionManager, find_user_by_id

BEARER_PREFIX = "bearer "


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_token_issuer(config: AuthConfig = Depends(get_auth_config)) -> TokenIssuer:
    return TokenIssuer(config)


def get_session_manager(
    session: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> SessionManager:
    return SessionManager(session, issuer)


def get_media_coordinator() -> MediaUploadCoordinator:
    return MediaUploadCoordinator()


def _extract_access_token(request: Request) -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip() or None
    return None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    token = _extract_access_token(request)
    if not token:
        raise AccountError(ErrorKind.MISSING_TOKEN)

    payload = issuer.verify_access_token(token)
    user = await find_user_by_id(session, payload["sub"])
    if user is None:
        raise AccountError(ErrorKind.INVALID_TOKEN, "Invalid access token")
    return user
