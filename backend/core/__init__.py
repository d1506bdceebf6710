"""Core configuration, security and response helpers."""

from .config import AuthConfig, Settings, get_auth_config, get_settings, settings
from .errors import AccountError, ErrorKind
from .responses import ApiResponse, api_response, envelope, register_exception_handlers
from .security import (
    AccessClaims,
    TokenIssuer,
    hash_password,
    hash_password_async,
    needs_rehash,
    utc_now,
    verify_password,
    verify_password_async,
)

__all__ = [
    "AuthConfig",
    "Settings",
    "get_auth_config",
    "get_settings",
    "settings",
    "AccountError",
    "ErrorKind",
    "ApiResponse",
    "api_response",
    "envelope",
    "register_exception_handlers",
    "AccessClaims",
    "TokenIssuer",
    "hash_password",
    "hash_password_async",
    "needs_rehash",
    "utc_now",
    "verify_password",
    "verify_password_async",
]
