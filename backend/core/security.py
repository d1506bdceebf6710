"""Password hashing and signed session tokens."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from .config import AuthConfig, settings
from .errors import AccountError, ErrorKind

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

Clock = Callable[[], datetime]

_password_hasher = PasswordHasher(
    time_cost=settings.password_hash_time_cost,
    memory_cost=settings.password_hash_memory_cost,
)


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def needs_rehash(password_hash: str) -> bool:
    return _password_hasher.check_needs_rehash(password_hash)


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """Identity claims carried by an access token."""

    id: str
    email: str
    username: str
    fullname: str


class TokenIssuer:
    """Issue and verify access/refresh JWTs.

    Access and refresh tokens are signed with separate secrets and tagged with
    a `type` claim, so one can never be accepted in place of the other. Every
    token carries a random `jti`, which makes two tokens issued for the same
    user within the same second distinct.
    """

    def __init__(self, config: AuthConfig, *, clock: Clock = utc_now) -> None:
        self._config = config
        self._clock = clock

    @property
    def config(self) -> AuthConfig:
        return self._config

    def _encode(
        self,
        claims: dict[str, Any],
        *,
        secret: str,
        token_type: str,
        ttl: timedelta,
    ) -> str:
        now = self._clock()
        payload = {
            **claims,
            "type": token_type,
            "jti": uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)

    def issue_access_token(self, claims: AccessClaims) -> str:
        return self._encode(
            {
                "sub": claims.id,
                "email": claims.email,
                "username": claims.username,
                "fullname": claims.fullname,
            },
            secret=self._config.access_token_secret,
            token_type=ACCESS_TOKEN_TYPE,
            ttl=timedelta(minutes=self._config.access_token_ttl_minutes),
        )

    def issue_refresh_token(self, user_id: str) -> str:
        return self._encode(
            {"sub": user_id},
            secret=self._config.refresh_token_secret,
            token_type=REFRESH_TOKEN_TYPE,
            ttl=timedelta(minutes=self._config.refresh_token_ttl_minutes),
        )

    def _decode(self, token: str, *, secret: str, token_type: str, message: str) -> dict[str, Any]:
        try:
            # Time claims are checked below against the injected clock.
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                options={
                    "require": ["sub", "exp", "type"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as exc:
            raise AccountError(ErrorKind.INVALID_TOKEN, message) from exc

        if payload.get("type") != token_type or not isinstance(payload.get("sub"), str):
            raise AccountError(ErrorKind.INVALID_TOKEN, message)
        expires_at = payload.get("exp")
        if not isinstance(expires_at, (int, float)) or expires_at <= self._clock().timestamp():
            raise AccountError(ErrorKind.INVALID_TOKEN, message)
        return payload

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        return self._decode(
            token,
            secret=self._config.refresh_token_secret,
            token_type=REFRESH_TOKEN_TYPE,
            message="Invalid refresh token",
        )

    def verify_access_token(self, token: str) -> dict[str, Any]:
        return self._decode(
            token,
            secret=self._config.access_token_secret,
            token_type=ACCESS_TOKEN_TYPE,
            message="Invalid access token",
        )
