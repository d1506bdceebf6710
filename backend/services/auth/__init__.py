"""Authentication domain services."""

from .cookies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_token_cookies,
    set_token_cookies,
)
from .credential_store import (
    create_user,
    find_public_user,
    find_user_by_id,
    rotate_refresh_token,
    set_user_fields,
    store_refresh_token,
)
from .identity_resolution import (
    ensure_field_lengths,
    normalize_email,
    normalize_username,
    registration_conflict_exists,
    resolve_login_user,
)
from .sessions import LoginResult, SessionManager, TokenPair

__all__ = [
    "ACCESS_COOKIE",
    "REFRESH_COOKIE",
    "clear_token_cookies",
    "set_token_cookies",
    "create_user",
    "find_public_user",
    "find_user_by_id",
    "rotate_refresh_token",
    "set_user_fields",
    "store_refresh_token",
    "ensure_field_lengths",
    "normalize_email",
    "normalize_username",
    "registration_conflict_exists",
    "resolve_login_user",
    "LoginResult",
    "SessionManager",
    "TokenPair",
]
