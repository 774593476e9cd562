"""
Shared fixtures: in-memory SQLite (aiosqlite, one shared connection), an in-memory object store
standing in for Google Drive, a recording activity recorder, and an httpx client on the app
with those wired in through dependency overrides.
"""
import os
import uuid
from typing import Any, AsyncGenerator, Dict, List, Optional

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from humanika.config import Settings
from humanika.db import Base, get_db, get_session_factory
from humanika.services.asset_ids import resolve_url
from humanika.services.asset_service import AssetManager


class FakeObjectStore:
    """Google Drive stand-in. Flip the fail_* flags to simulate a failing step."""

    def __init__(self) -> None:
        self.files: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.fail_upload = False
        self.fail_rename = False
        self.fail_public_access = False
        self.fail_delete = False

    def upload(self, data: bytes, name: str, folder_id: str, mime_type: Optional[str] = None) -> str:
        self.calls.append(("upload", name, folder_id))
        if self.fail_upload:
            raise RuntimeError("drive unavailable")
        file_id = "f" + uuid.uuid4().hex
        self.files[file_id] = {"name": name, "folder_id": folder_id, "data": data, "public": False}
        return file_id

    def rename(self, file_id: str, name: str) -> bool:
        self.calls.append(("rename", file_id, name))
        if self.fail_rename:
            return False
        self.files[file_id]["name"] = name
        return True

    def set_public_access(self, file_id: str) -> bool:
        self.calls.append(("set_public_access", file_id))
        if self.fail_public_access:
            raise RuntimeError("permission denied")
        self.files[file_id]["public"] = True
        return True

    def delete(self, file_id: str) -> bool:
        self.calls.append(("delete", file_id))
        if self.fail_delete:
            raise RuntimeError("delete failed")
        return self.files.pop(file_id, None) is not None

    def resolve_url(self, file_id: str) -> str:
        return resolve_url(file_id)

    def put(self, name: str = "existing") -> str:
        """Seed a file as if uploaded earlier."""
        file_id = "f" + uuid.uuid4().hex
        self.files[file_id] = {"name": name, "folder_id": "root", "data": b"old", "public": True}
        return file_id


class FakeRecorder:
    """Keeps every record() call; fail=True makes record() raise."""

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []
        self.fail = False

    async def record(self, **kwargs: Any) -> bool:
        if self.fail:
            raise RuntimeError("activity store down")
        self.records.append(kwargs)
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        DATABASE_URL="sqlite+aiosqlite://",
        GDRIVE_ROOT_FOLDER_ID="root-folder",
        GDRIVE_DOCUMENT_FOLDER_ID="documents-folder",
        GDRIVE_PROPOSAL_FOLDER_ID="proposals-folder",
        GDRIVE_LETTER_FOLDER_ID="letters-folder",
        GDRIVE_EVENT_THUMBNAIL_FOLDER_ID="events-folder",
        ASSET_MAX_MB=1,
    )


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def recorder() -> FakeRecorder:
    return FakeRecorder()


@pytest.fixture
def manager(store: FakeObjectStore, settings: Settings) -> AssetManager:
    return AssetManager(store, settings)


@pytest.fixture
def seed(session_factory: async_sessionmaker[AsyncSession]):
    """seed(*rows): insert and commit in a throwaway session."""

    async def _seed(*rows: Any) -> None:
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()

    return _seed


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    store: FakeObjectStore,
    recorder: FakeRecorder,
    settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    from humanika.main import app
    from humanika.routers.deps import get_activity_recorder, get_asset_manager

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_activity_recorder] = lambda: recorder
    app.dependency_overrides[get_asset_manager] = lambda: AssetManager(store, settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
