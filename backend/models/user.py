"""User account model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Column, DateTime, String, Text, func
from sqlmodel import Field, SQLModel

USERNAME_MAX_LENGTH = 30
EMAIL_MAX_LENGTH = 255
FULLNAME_MAX_LENGTH = 120


class User(SQLModel, table=True):
    """Registered account.

    `password_hash` and `refresh_token` never leave the service layer; callers
    receive `UserPublic` instead.
    """

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    username: str = Field(
        sa_column=Column(String(USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    )
    email: str = Field(
        sa_column=Column(String(EMAIL_MAX_LENGTH), unique=True, nullable=False, index=True)
    )
    fullname: str = Field(
        sa_column=Column(String(FULLNAME_MAX_LENGTH), nullable=False, index=True)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    # Stored verbatim: revocation works by overwriting or clearing this value.
    refresh_token: str | None = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    avatar_url: str = Field(
        sa_column=Column(String(512), nullable=False)
    )
    avatar_public_id: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    cover_image_url: str | None = Field(
        default=None, sa_column=Column(String(512), nullable=True)
    )
    cover_image_public_id: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        ),
    )


class UserPublic(BaseModel):
    """User projection safe to return to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    fullname: str
    avatar_url: str
    cover_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
