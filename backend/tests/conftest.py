"""Shared pytest fixtures for the serial reader test suite."""

import os
import tempfile

# Configure the application before any app module is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="serial-reader-storage-"))
os.environ.setdefault("API_TOKENS", '{"admin-token": "admin", "reader-token": "reader"}')

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def session_maker():
    """Session factory bound to a fresh in-memory database."""
    from app.models.database import Base

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    """An open database session."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def novel(db):
    """Insert and return a sample Novel record."""
    from app.models.database import Novel

    record = Novel(title="The Harbor Lights", author="Jane Writer")
    db.add(record)
    await db.commit()
    return record


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def storage(tmp_path):
    """Object store writing under tmp_path."""
    from app.core.storage import ObjectStorage

    return ObjectStorage(
        base_dir=tmp_path / "storage",
        bucket="novels",
        public_base_url="http://testserver",
        max_retries=1,
    )


@pytest.fixture
def mock_sink():
    """Asset sink returning a distinct URL per upload."""
    from app.core.epub.assets import AssetSink

    sink = AsyncMock(spec=AssetSink)
    sink.enabled = True
    sink.put.side_effect = lambda name, data, content_type: f"https://cdn.test/{name}"
    return sink


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_maker, storage):
    """HTTP client for the app, wired to the test database and storage."""
    import httpx
    from app.main import app
    from app.models.database import get_db
    from app.api.dependencies import get_storage

    async def _get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
