"""Tests for authenticated self-service account endpoints."""

from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core import AccountError, ErrorKind, verify_password
from models import User
from services import update_account_details

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PASSWORD = "Secret123!"


def build_payload() -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "fullname": "Alice Liddell",
        "username": f"alice_{suffix}",
        "email": f"alice_{suffix}@x.com",
        "password": PASSWORD,
    }


async def register(async_client: AsyncClient, payload: dict[str, str]):
    return await async_client.post(
        "/api/v1/users/register",
        data=payload,
        files={"avatar": ("avatar.png", PNG_BYTES, "image/png")},
    )


async def load_user(session: AsyncSession, username: str) -> User:
    result = await session.execute(
        select(User)
        .where(User.username == username)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def register_and_login(async_client: AsyncClient) -> tuple[dict[str, str], dict[str, Any]]:
    payload = build_payload()
    assert (await register(async_client, payload)).status_code == 201
    response = await async_client.post(
        "/api/v1/users/login",
        json={"username": payload["username"], "password": PASSWORD},
    )
    assert response.status_code == 200
    return payload, response.json()["data"]


@pytest.mark.asyncio
async def test_current_user_returns_public_profile(async_client: AsyncClient):
    payload, _ = await register_and_login(async_client)

    response = await async_client.get("/api/v1/users/current-user")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == payload["username"]
    assert "password_hash" not in data
    assert "refresh_token" not in data


@pytest.mark.asyncio
async def test_current_user_requires_auth(async_client: AsyncClient):
    response = await async_client.get("/api/v1/users/current-user")

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_current_user_rejects_refresh_token_as_access_token(async_client: AsyncClient):
    _, data = await register_and_login(async_client)
    async_client.cookies.clear()

    response = await async_client.get(
        "/api/v1/users/current-user",
        headers={"Authorization": f"Bearer {data['refreshToken']}"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_change_password_rehashes_and_revokes_refresh_token(
    async_client: AsyncClient, db_session: AsyncSession
):
    payload, data = await register_and_login(async_client)

    response = await async_client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": PASSWORD, "newPassword": "N3wSecret!"},
    )

    assert response.status_code == 200
    user = await load_user(db_session, payload["username"])
    assert verify_password("N3wSecret!", user.password_hash)
    assert user.refresh_token is None

    old_login = await async_client.post(
        "/api/v1/users/login",
        json={"email": payload["email"], "password": PASSWORD},
    )
    assert old_login.status_code == 401
    new_login = await async_client.post(
        "/api/v1/users/login",
        json={"email": payload["email"], "password": "N3wSecret!"},
    )
    assert new_login.status_code == 200
    assert new_login.json()["data"]["refreshToken"] != data["refreshToken"]


@pytest.mark.asyncio
async def test_change_password_rejects_wrong_old_password(async_client: AsyncClient):
    await register_and_login(async_client)

    response = await async_client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": "wrong-password", "newPassword": "N3wSecret!"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid old password"


@pytest.mark.asyncio
async def test_update_account_details(async_client: AsyncClient):
    await register_and_login(async_client)

    response = await async_client.patch(
        "/api/v1/users/update-account",
        json={"fullname": "  Alice L. ", "email": "New.Address@X.com"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["fullname"] == "Alice L."
    assert data["email"] == "new.address@x.com"


@pytest.mark.asyncio
async def test_update_account_rejects_taken_email(async_client: AsyncClient):
    other = build_payload()
    assert (await register(async_client, other)).status_code == 201
    await register_and_login(async_client)

    response = await async_client.patch(
        "/api/v1/users/update-account",
        json={"fullname": "Alice", "email": other["email"]},
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_account_details_rejects_overlong_email(
    async_client: AsyncClient, db_session: AsyncSession
):
    payload, _ = await register_and_login(async_client)
    user = await load_user(db_session, payload["username"])

    with pytest.raises(AccountError) as exc_info:
        await update_account_details(
            db_session,
            user,
            fullname="Alice",
            email="a" * 250 + "@x.com",
        )

    assert exc_info.value.kind is ErrorKind.INVALID_FIELDS
    assert (await load_user(db_session, payload["username"])).email == payload["email"]


@pytest.mark.asyncio
async def test_update_avatar_replaces_previous_media(
    async_client: AsyncClient, db_session: AsyncSession, object_store
):
    payload, _ = await register_and_login(async_client)
    previous_avatar_id = (await load_user(db_session, payload["username"])).avatar_public_id

    response = await async_client.patch(
        "/api/v1/users/avatar",
        files={"avatar": ("new-avatar.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 200
    user = await load_user(db_session, payload["username"])
    assert user.avatar_public_id != previous_avatar_id
    assert response.json()["data"]["avatar_url"] == user.avatar_url
    assert object_store.removed_keys == [previous_avatar_id]
    assert user.avatar_public_id in object_store.objects


@pytest.mark.asyncio
async def test_update_cover_image_sets_optional_media(
    async_client: AsyncClient, db_session: AsyncSession, object_store
):
    payload, _ = await register_and_login(async_client)

    response = await async_client.patch(
        "/api/v1/users/cover-image",
        files={"coverImage": ("cover.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 200
    user = await load_user(db_session, payload["username"])
    assert user.cover_image_public_id in object_store.objects
    assert object_store.removed_keys == []


@pytest.mark.asyncio
async def test_update_avatar_requires_file(async_client: AsyncClient):
    await register_and_login(async_client)

    response = await async_client.patch("/api/v1/users/avatar")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_avatar_upload_failure_keeps_existing_avatar(
    async_client: AsyncClient, db_session: AsyncSession, object_store
):
    payload, _ = await register_and_login(async_client)
    previous_avatar_id = (await load_user(db_session, payload["username"])).avatar_public_id
    object_store.fail_uploads_after = len(object_store.uploaded_keys)

    response = await async_client.patch(
        "/api/v1/users/avatar",
        files={"avatar": ("new-avatar.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 500
    user = await load_user(db_session, payload["username"])
    assert user.avatar_public_id == previous_avatar_id
    assert object_store.removed_keys == []
