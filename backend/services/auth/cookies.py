"""HTTP cookie helpers for auth token transport."""

from __future__ import annotations

from typing import Literal

from fastapi import Response

from core import AuthConfig

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"


def set_token_cookies(
    response: Response,
    access_token: str,
    refresh_token: str,
    *,
    config: AuthConfig,
) -> None:
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        httponly=True,
        secure=config.cookie_secure,
        samesite=COOKIE_SAMESITE,
        max_age=config.access_token_ttl_minutes * 60,
        path=COOKIE_PATH,
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=config.cookie_secure,
        samesite=COOKIE_SAMESITE,
        max_age=config.refresh_token_ttl_minutes * 60,
        path=COOKIE_PATH,
    )


def clear_token_cookies(response: Response, *, config: AuthConfig) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=key,
            path=COOKIE_PATH,
            secure=config.cookie_secure,
            httponly=True,
            samesite=COOKIE_SAMESITE,
        )
