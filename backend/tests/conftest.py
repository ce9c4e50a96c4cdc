"""
Twinshot Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_storage: Temporary directory for file operations
    ├── make_image_bytes: Factory for real encoded images of a given size
    ├── sample_image_bytes: A small JPEG
    ├── database: A Database bound to a scratch SQLite file, schema created
    ├── db_session: A session on that database
    └── test_client: HTTPX AsyncClient against a fresh app + scratch database
"""

import io
import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="twinshot_test_")
os.environ["JWT_SECRET_KEY"] = "test-secret-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from PIL import Image

from app.config import Settings
from app.database import Database


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_post(mock_db_session):
            mock_db_session.get.return_value = None
            with pytest.raises(NotFoundError):
                await post_service.get_post(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage directory for each test."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def make_image_bytes():
    """
    Factory producing real encoded images.

    Usage:
        data = make_image_bytes(200, 100, "PNG")
    """

    def _make(width: int, height: int, fmt: str = "JPEG", color=(200, 40, 40)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_image_bytes(make_image_bytes):
    return make_image_bytes(64, 48)


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a scratch SQLite file and upload directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        storage_root=str(tmp_path / "uploads"),
    )


@pytest_asyncio.fixture
async def database(test_settings):
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """
    A real session on the scratch database. Tests commit explicitly when
    they need data to outlive a rollback.
    """
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(test_settings):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    ASGITransport does not run the lifespan, so the schema is created here.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import create_app

    app = create_app(test_settings)
    await app.state.database.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    await app.state.database.dispose()


@pytest.fixture
def make_account(db_session):
    """
    Factory inserting an Account directly (no password hashing).

    Usage:
        alice = await make_account("alice")
    """
    from app.models.account import Account

    async def _make(username: str, display_name: str = None) -> Account:
        account = Account(
            email=f"{username}@example.com",
            username=username,
            display_name=display_name or username.title(),
            password_hash="not-a-real-hash",
        )
        db_session.add(account)
        await db_session.flush()
        return account

    return _make
