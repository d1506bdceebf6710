"""Login, refresh-token rotation and logout."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core import (
    AccessClaims,
    AccountError,
    ErrorKind,
    TokenIssuer,
    hash_password_async,
    needs_rehash,
    verify_password_async,
)
from models import User, UserPublic

from .credential_store import (
    find_user_by_id,
    rotate_refresh_token,
    set_user_fields,
    store_refresh_token,
)
from .identity_resolution import resolve_login_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: UserPublic


def _access_claims(user: User) -> AccessClaims:
    return AccessClaims(
        id=user.id,
        email=user.email,
        username=user.username,
        fullname=user.fullname,
    )


class SessionManager:
    """Drive a user's session between anonymous and authenticated.

    Exactly one refresh token per user is trusted: the value stored on the
    user row. Login and refresh overwrite it, logout clears it.
    """

    def __init__(self, session: AsyncSession, issuer: TokenIssuer) -> None:
        self._session = session
        self._issuer = issuer

    @property
    def issuer(self) -> TokenIssuer:
        return self._issuer

    def _issue_pair(self, user: User) -> TokenPair:
        try:
            return TokenPair(
                access_token=self._issuer.issue_access_token(_access_claims(user)),
                refresh_token=self._issuer.issue_refresh_token(user.id),
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("Failed to sign session tokens", extra={"user_id": user.id}, exc_info=exc)
            raise AccountError(ErrorKind.TOKEN_GENERATION_FAILED) from exc

    async def _persist_failed(self, user_id: str, exc: Exception) -> AccountError:
        await self._session.rollback()
        logger.error("Failed to persist refresh token", extra={"user_id": user_id}, exc_info=exc)
        return AccountError(ErrorKind.TOKEN_GENERATION_FAILED)

    async def login(self, identifier: str, password: str) -> LoginResult:
        if not identifier.strip() or not password:
            raise AccountError(ErrorKind.MISSING_FIELDS, "Username or email and password are required")

        user = await resolve_login_user(self._session, identifier)
        if user is None:
            raise AccountError(ErrorKind.NOT_FOUND)
        if not await verify_password_async(password, user.password_hash):
            raise AccountError(ErrorKind.INVALID_CREDENTIALS)

        public_user = UserPublic.model_validate(user)
        pair = self._issue_pair(user)
        values: dict[str, str] = {"refresh_token": pair.refresh_token}
        if needs_rehash(user.password_hash):
            values["password_hash"] = await hash_password_async(password)
        try:
            await set_user_fields(self._session, user.id, **values)
        except SQLAlchemyError as exc:
            raise await self._persist_failed(user.id, exc) from exc

        logger.info("User logged in", extra={"user_id": user.id})
        return LoginResult(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            user=public_user,
        )

    async def refresh(self, presented_token: str | None) -> TokenPair:
        if not presented_token:
            raise AccountError(ErrorKind.MISSING_TOKEN)

        payload = self._issuer.verify_refresh_token(presented_token)
        user = await find_user_by_id(self._session, payload["sub"])
        if user is None:
            raise AccountError(ErrorKind.INVALID_TOKEN)

        stored_token = user.refresh_token or ""
        if not hmac.compare_digest(stored_token.encode("utf-8"), presented_token.encode("utf-8")):
            logger.warning("Rejected stale or reused refresh token", extra={"user_id": user.id})
            raise AccountError(ErrorKind.INVALID_TOKEN, "Refresh token is expired or used")

        pair = self._issue_pair(user)
        try:
            rotated = await rotate_refresh_token(
                self._session,
                user.id,
                expected=presented_token,
                replacement=pair.refresh_token,
            )
        except SQLAlchemyError as exc:
            raise await self._persist_failed(user.id, exc) from exc
        if not rotated:
            # A concurrent refresh consumed the token first.
            raise AccountError(ErrorKind.INVALID_TOKEN, "Refresh token is expired or used")
        return pair

    async def logout(self, user_id: str) -> None:
        if not await store_refresh_token(self._session, user_id, None):
            raise AccountError(ErrorKind.NOT_FOUND)
        logger.info("User logged out", extra={"user_id": user_id})
