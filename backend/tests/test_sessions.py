"""Unit tests for the session manager state machine."""

from __future__ import annotations

import jwt
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core import AccountError, AuthConfig, ErrorKind, TokenIssuer, hash_password
from models import User
from services.auth import SessionManager, create_user, rotate_refresh_token
from services.auth import sessions as sessions_module

PASSWORD = "Secret123!"
CONFIG = AuthConfig(
    access_token_secret="test-access-token-signing-secret-0001",
    access_token_ttl_minutes=15,
    refresh_token_secret="test-refresh-token-signing-secret-0001",
    refresh_token_ttl_minutes=60,
    cookie_secure=False,
)


async def _create_alice(session: AsyncSession) -> User:
    return await create_user(
        session,
        username="alice",
        email="alice@x.com",
        fullname="Alice",
        password_hash=hash_password(PASSWORD),
        avatar_url="https://media.example.com/vidshare-media/avatars/a.png",
        avatar_public_id="avatars/a.png",
    )


async def _stored_refresh_token(session: AsyncSession, user_id: str) -> str | None:
    result = await session.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one().refresh_token


@pytest.fixture()
def manager(db_session: AsyncSession) -> SessionManager:
    return SessionManager(db_session, TokenIssuer(CONFIG))


@pytest.mark.asyncio
async def test_login_by_email_persists_issued_refresh_token(db_session: AsyncSession, manager):
    user = await _create_alice(db_session)

    result = await manager.login("  Alice@X.com ", PASSWORD)

    assert result.user.id == user.id
    assert await _stored_refresh_token(db_session, user.id) == result.refresh_token
    assert manager.issuer.verify_access_token(result.access_token)["username"] == "alice"


@pytest.mark.asyncio
async def test_login_by_username(db_session: AsyncSession, manager):
    await _create_alice(db_session)

    result = await manager.login("alice", PASSWORD)

    assert result.user.email == "alice@x.com"


@pytest.mark.asyncio
async def test_login_distinguishes_unknown_user_from_bad_password(db_session: AsyncSession, manager):
    user = await _create_alice(db_session)

    with pytest.raises(AccountError) as unknown:
        await manager.login("bob@x.com", PASSWORD)
    with pytest.raises(AccountError) as wrong:
        await manager.login("alice@x.com", "wrong")

    assert unknown.value.kind is ErrorKind.NOT_FOUND
    assert wrong.value.kind is ErrorKind.INVALID_CREDENTIALS
    assert await _stored_refresh_token(db_session, user.id) is None


@pytest.mark.asyncio
async def test_login_upgrades_outdated_password_hash(
    db_session: AsyncSession, manager, monkeypatch: pytest.MonkeyPatch
):
    user = await _create_alice(db_session)
    original_hash = user.password_hash
    monkeypatch.setattr(sessions_module, "needs_rehash", lambda password_hash: True)

    await manager.login("alice", PASSWORD)

    result = await db_session.execute(
        select(User).where(User.id == user.id).execution_options(populate_existing=True)
    )
    assert result.scalar_one().password_hash != original_hash


@pytest.mark.asyncio
async def test_token_signing_failure_is_a_server_fault(db_session: AsyncSession, manager, monkeypatch):
    user = await _create_alice(db_session)

    def broken_issue(user_id: str) -> str:
        raise jwt.PyJWTError("signing backend unavailable")

    monkeypatch.setattr(manager.issuer, "issue_refresh_token", broken_issue)

    with pytest.raises(AccountError) as exc_info:
        await manager.login("alice", PASSWORD)

    assert exc_info.value.kind is ErrorKind.TOKEN_GENERATION_FAILED
    assert exc_info.value.status_code == 500
    assert await _stored_refresh_token(db_session, user.id) is None


@pytest.mark.asyncio
async def test_refresh_rotates_and_invalidates_previous_token(db_session: AsyncSession, manager):
    user = await _create_alice(db_session)
    login = await manager.login("alice", PASSWORD)

    pair = await manager.refresh(login.refresh_token)

    assert pair.refresh_token != login.refresh_token
    assert await _stored_refresh_token(db_session, user.id) == pair.refresh_token
    with pytest.raises(AccountError) as exc_info:
        await manager.refresh(login.refresh_token)
    assert exc_info.value.kind is ErrorKind.INVALID_TOKEN


@pytest.mark.asyncio
async def test_refresh_requires_token(manager):
    with pytest.raises(AccountError) as exc_info:
        await manager.refresh(None)

    assert exc_info.value.kind is ErrorKind.MISSING_TOKEN


@pytest.mark.asyncio
async def test_refresh_for_deleted_user_is_invalid(db_session: AsyncSession, manager):
    token = manager.issuer.issue_refresh_token("missing-user")

    with pytest.raises(AccountError) as exc_info:
        await manager.refresh(token)

    assert exc_info.value.kind is ErrorKind.INVALID_TOKEN


@pytest.mark.asyncio
async def test_conditional_rotation_loses_against_earlier_writer(db_session: AsyncSession, manager):
    user = await _create_alice(db_session)
    login = await manager.login("alice", PASSWORD)

    first = await rotate_refresh_token(
        db_session, user.id, expected=login.refresh_token, replacement="winner"
    )
    second = await rotate_refresh_token(
        db_session, user.id, expected=login.refresh_token, replacement="loser"
    )

    assert first is True
    assert second is False
    assert await _stored_refresh_token(db_session, user.id) == "winner"


@pytest.mark.asyncio
async def test_logout_clears_refresh_token_and_is_idempotent(db_session: AsyncSession, manager):
    user = await _create_alice(db_session)
    login = await manager.login("alice", PASSWORD)

    await manager.logout(user.id)
    await manager.logout(user.id)

    assert await _stored_refresh_token(db_session, user.id) is None
    with pytest.raises(AccountError) as exc_info:
        await manager.refresh(login.refresh_token)
    assert exc_info.value.kind is ErrorKind.INVALID_TOKEN


@pytest.mark.asyncio
async def test_logout_unknown_user_is_not_found(manager):
    with pytest.raises(AccountError) as exc_info:
        await manager.logout("missing-user")

    assert exc_info.value.kind is ErrorKind.NOT_FOUND
