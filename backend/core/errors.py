"""Error kinds raised by the account services."""

from __future__ import annotations

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    MISSING_FIELDS = "missing_fields"
    INVALID_FIELDS = "invalid_fields"
    CONFLICT = "conflict"
    MISSING_AVATAR = "missing_avatar"
    UPLOAD_FAILED = "upload_failed"
    UPLOAD_TOO_LARGE = "upload_too_large"
    CREATION_FAILED = "creation_failed"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    MISSING_TOKEN = "missing_token"
    TOKEN_GENERATION_FAILED = "token_generation_failed"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MISSING_FIELDS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_FIELDS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MISSING_AVATAR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UPLOAD_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.UPLOAD_TOO_LARGE: status.HTTP_413_CONTENT_TOO_LARGE,
    ErrorKind.CREATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.MISSING_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_GENERATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.MISSING_FIELDS: "All fields are required",
    ErrorKind.INVALID_FIELDS: "Invalid field value",
    ErrorKind.CONFLICT: "User with email or username already exists",
    ErrorKind.MISSING_AVATAR: "Avatar file is required",
    ErrorKind.UPLOAD_FAILED: "Failed to upload media",
    ErrorKind.UPLOAD_TOO_LARGE: "Uploaded file is too large",
    ErrorKind.CREATION_FAILED: "Something went wrong while registering the user",
    ErrorKind.NOT_FOUND: "User does not exist",
    ErrorKind.INVALID_CREDENTIALS: "Invalid user credentials",
    ErrorKind.INVALID_TOKEN: "Invalid refresh token",
    ErrorKind.MISSING_TOKEN: "Unauthorized request",
    ErrorKind.TOKEN_GENERATION_FAILED: "Something went wrong while generating tokens",
}


class AccountError(Exception):
    """Failure of an account operation, tagged with its `ErrorKind`.

    Callers branch on `kind`; the HTTP status is derived from it.
    """

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AccountError(kind={self.kind.value!r}, message={self.message!r})"


__all__ = ["AccountError", "DEFAULT_MESSAGES", "ErrorKind", "STATUS_BY_KIND"]
