"""Pytest fixtures for the vidshare backend."""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("PASSWORD_HASH_TIME_COST", "1")
os.environ.setdefault("PASSWORD_HASH_MEMORY_COST", "1024")

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from api.deps import get_db, get_media_coordinator
from app import create_app
from core.config import settings
from services import MediaUploadCoordinator


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


class InMemoryObjectStore:
    """MinIO stand-in that keeps uploaded objects in a dict."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.uploaded_keys: list[str] = []
        self.removed_keys: list[str] = []
        self.fail_uploads_after: int | None = None

    def bucket_exists(self, bucket_name: str) -> bool:
        return True

    def make_bucket(self, bucket_name: str) -> None:  # pragma: no cover - not used
        return None

    def fput_object(self, bucket_name, object_name, file_path, content_type=None):
        if self.fail_uploads_after is not None and len(self.uploaded_keys) >= self.fail_uploads_after:
            raise ConnectionError("object store unavailable")
        self.objects[object_name] = Path(file_path).read_bytes()
        self.uploaded_keys.append(object_name)

    def remove_object(self, bucket_name, object_name):
        self.removed_keys.append(object_name)
        self.objects.pop(object_name, None)


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def test_engine(test_database_url: str) -> AsyncIterator:
    """Create an async engine bound to the migrated SQLite test database."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture()
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture()
def media_coordinator(object_store: InMemoryObjectStore) -> MediaUploadCoordinator:
    return MediaUploadCoordinator(object_store)


@pytest.fixture(autouse=True)
def upload_temp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Stage multipart uploads under a per-test temporary directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_temp_dir", str(directory))
    return directory


@pytest.fixture()
def app(session_maker, media_coordinator) -> Iterator[FastAPI]:
    """Create the FastAPI app with test database and object store overrides."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_media_coordinator] = lambda: media_coordinator
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session
