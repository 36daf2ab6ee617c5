"""Pytest configuration and shared fixtures"""

import pytest
import pytest_asyncio
from datetime import date
from unittest.mock import AsyncMock, Mock

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

import modelvault.models  # noqa: F401
from modelvault.database import Base, enable_sqlite_foreign_keys
from modelvault.schemas.upload import BatchUploadResult, FileUpload
from modelvault.store.record_store import RecordStore


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Engine on a throwaway SQLite file; one connection per session"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def store(test_engine) -> RecordStore:
    """Record store over the test database"""
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return RecordStore(session_factory)


@pytest_asyncio.fixture
async def seeded(store: RecordStore) -> dict:
    """
    Lookup tables, users and one creator project.

    Project "Wedding Set" has model "Mandap" with version 1 (image A) and
    version 2 (images B, C; cover C). The client is assigned to the project.
    """
    [creator, client, admin, pending] = await store.insert(
        "users",
        [
            {"email": "creator@example.com", "full_name": "Asha Creator", "role": "creator", "is_approved": True},
            {"email": "client@example.com", "full_name": "Ravi Client", "role": "client", "is_approved": True},
            {"email": "admin@example.com", "full_name": "Admin", "role": "admin", "is_approved": True},
            {"email": "pending@example.com", "full_name": "Pending Client", "role": "client", "is_approved": False},
        ],
    )

    project_statuses = await store.insert(
        "project_status", [{"status": "Active"}, {"status": "In Progress"}]
    )
    model_statuses = await store.insert(
        "model_status",
        [{"status": "Draft"}, {"status": "Approved"}, {"status": "Released for Download"}],
    )
    [furniture, stage] = await store.insert(
        "model_categories", [{"name": "Furniture"}, {"name": "Stage"}]
    )

    [project] = await store.insert(
        "projects",
        {
            "name": "Wedding Set",
            "start_date": date(2024, 5, 1),
            "creator_id": creator["id"],
            "status_id": project_statuses[0]["id"],
        },
    )
    await store.insert("project_clients", {"project_id": project["id"], "user_id": client["id"]})

    [model] = await store.insert(
        "models",
        {
            "name": "Mandap",
            "project_id": project["id"],
            "category_id": stage["id"],
            "status_id": model_statuses[0]["id"],
        },
    )

    [v1, v2] = await store.insert(
        "model_versions",
        [
            {"model_id": model["id"], "version": 1, "file_path": "https://cdn/m/1/scene.gltf"},
            {
                "model_id": model["id"],
                "version": 2,
                "file_path": "https://cdn/m/2/scene.gltf",
                "thumbnail_url": "https://cdn/img/C.png",
                "can_download": True,
            },
        ],
    )
    await store.insert(
        "model_images",
        [
            {"version_id": v1["id"], "image_path": "https://cdn/img/A.png"},
            {"version_id": v2["id"], "image_path": "https://cdn/img/B.png"},
            {"version_id": v2["id"], "image_path": "https://cdn/img/C.png"},
        ],
    )

    return {
        "creator": creator,
        "client": client,
        "admin": admin,
        "pending": pending,
        "project": project,
        "model": model,
        "v1": v1,
        "v2": v2,
        "categories": {"Furniture": furniture, "Stage": stage},
        "model_statuses": {s["status"]: s for s in model_statuses},
    }


@pytest.fixture
def image_file():
    """Factory for in-memory image uploads"""
    def _make(name: str = "photo.png") -> FileUpload:
        return FileUpload(filename=name, content=b"\x89PNG data", content_type="image/png")
    return _make


@pytest.fixture
def mock_blob_store():
    """Blob store double returning one URL per uploaded image, in order"""
    blob_store = Mock()

    async def upload_images(model_id, version_number, files):
        return BatchUploadResult(
            success=True,
            image_urls=[f"https://cdn/img/{model_id}-{version_number}-{i}.png" for i in range(len(files))],
        )

    blob_store.upload_images = AsyncMock(side_effect=upload_images)
    blob_store.upload_model_folder = AsyncMock(
        side_effect=lambda model_id, number, files: f"https://cdn/models/{model_id}/{number}/scene.gltf"
    )
    blob_store.delete_images = Mock(side_effect=lambda urls: list(urls))
    return blob_store
