"""Tests for the record store adapter and relation helpers"""

import asyncio
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError

from modelvault.store.record_store import (
    DuplicateRecordError,
    Filter,
    RecordNotFoundError,
    StoreError,
    UnknownCollectionError,
    is_unique_violation,
)
from modelvault.store.relations import as_list, first_or_none, related_value


class TestRelationHelpers:
    """Test nested relation normalization"""

    def test_as_list(self):
        assert as_list(None) == []
        assert as_list([1, 2]) == [1, 2]
        assert as_list((1,)) == [1]
        assert as_list({"id": 1}) == [{"id": 1}]
        assert as_list(42) == []

    def test_first_or_none(self):
        assert first_or_none([{"id": 1}, {"id": 2}]) == {"id": 1}
        assert first_or_none({"id": 3}) == {"id": 3}
        assert first_or_none([]) is None
        assert first_or_none(["x"]) is None

    def test_related_value(self):
        record = {"status": [{"status": "Approved"}], "category": {"name": None}}

        assert related_value(record, "status", "status", "Draft") == "Approved"
        assert related_value(record, "category", "name", "Uncategorized") == "Uncategorized"
        assert related_value(None, "status", "status", "Draft") == "Draft"


class TestSelect:
    """Test fetches with filters and nested relations"""

    @pytest.mark.asyncio
    async def test_nested_include(self, store, seeded):
        [project] = await store.select(
            "projects",
            [Filter.eq("id", seeded["project"]["id"])],
            include=("status", "models.versions.images", "models.category"),
        )

        assert project["status"]["status"] == "Active"
        [model] = project["models"]
        assert model["category"]["name"] == "Stage"
        assert sorted(v["version"] for v in model["versions"]) == [1, 2]
        assert all(isinstance(v["images"], list) for v in model["versions"])

    @pytest.mark.asyncio
    async def test_relations_absent_unless_included(self, store, seeded):
        project = await store.get("projects", seeded["project"]["id"])
        assert "models" not in project

    @pytest.mark.asyncio
    async def test_filters_and_ordering(self, store, seeded):
        users = await store.select(
            "users", [Filter.isin("role", ["client", "admin"])], order_by="email", descending=True
        )
        assert [u["email"] for u in users] == [
            "pending@example.com",
            "client@example.com",
            "admin@example.com",
        ]

        approved = await store.select(
            "users", [Filter.neq("is_approved", False), Filter.ilike("full_name", "%client%")]
        )
        assert [u["email"] for u in approved] == ["client@example.com"]

        assert await store.count("model_images") == 3
        assert len(await store.select("model_images", limit=2)) == 2
        assert await store.select("model_versions", [Filter.is_null("thumbnail_url")]) != []

    @pytest.mark.asyncio
    async def test_concurrent_calls(self, store, seeded):
        """Independent calls may be awaited together"""
        users, projects, count = await asyncio.gather(
            store.select("users"), store.select("projects"), store.count("models")
        )
        assert (len(users), len(projects), count) == (4, 1, 1)

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        with pytest.raises(RecordNotFoundError):
            await store.get("projects", 999)

    @pytest.mark.asyncio
    async def test_unknown_names(self, store):
        with pytest.raises(UnknownCollectionError):
            await store.select("widgets")
        with pytest.raises(UnknownCollectionError):
            await store.select("users", [Filter.eq("nickname", "x")])
        with pytest.raises(UnknownCollectionError):
            await store.select("users", include=("friends",))

    def test_unsupported_operator(self):
        with pytest.raises(ValueError):
            Filter("id", "between", (1, 2))


class TestWrites:
    """Test insert, update and delete"""

    @pytest.mark.asyncio
    async def test_insert_returns_generated_fields(self, store):
        [category] = await store.insert("model_categories", {"name": "Lighting"})

        assert category["id"] is not None
        assert category["created_at"] is not None

    @pytest.mark.asyncio
    async def test_duplicate_insert(self, store, seeded):
        with pytest.raises(DuplicateRecordError):
            await store.insert("model_categories", {"name": "Stage"})

        assert await store.insert_ignore_duplicate("model_categories", {"name": "Stage"}) is False
        assert await store.insert_ignore_duplicate("model_categories", {"name": "Props"}) is True

    @pytest.mark.asyncio
    async def test_not_null_violation_is_not_a_duplicate(self, store, seeded):
        with pytest.raises(StoreError) as exc_info:
            await store.insert("projects", {"name": None, "creator_id": seeded["creator"]["id"]})
        assert not isinstance(exc_info.value, DuplicateRecordError)

    @pytest.mark.asyncio
    async def test_ignore_duplicate_still_raises_invalid_rows(self, store, seeded):
        """Only unique conflicts are ignored; missing or dangling keys raise"""
        with pytest.raises(StoreError) as exc_info:
            await store.insert_ignore_duplicate(
                "portfolio_page_models", {"page_id": None, "model_id": seeded["model"]["id"]}
            )
        assert not isinstance(exc_info.value, DuplicateRecordError)

        with pytest.raises(StoreError) as exc_info:
            await store.insert_ignore_duplicate(
                "portfolio_page_models", {"page_id": 9999, "model_id": seeded["model"]["id"]}
            )
        assert not isinstance(exc_info.value, DuplicateRecordError)
        assert await store.count("portfolio_page_models") == 0

    @pytest.mark.asyncio
    async def test_update_and_delete_counts(self, store, seeded):
        updated = await store.update(
            "model_versions", {"can_download": True}, [Filter.eq("model_id", seeded["model"]["id"])]
        )
        assert updated == 2

        deleted = await store.delete("model_images", [Filter.eq("version_id", seeded["v2"]["id"])])
        assert deleted == 2

    @pytest.mark.asyncio
    async def test_delete_requires_filters(self, store):
        with pytest.raises(StoreError):
            await store.delete("users", [])


class TestUniqueViolation:
    """Test integrity error classification by SQLSTATE"""

    def test_postgres_unique_violation(self):
        error = IntegrityError("INSERT", {}, Mock(sqlstate="23505"))
        assert is_unique_violation(error)

    def test_postgres_foreign_key_violation(self):
        error = IntegrityError("INSERT", {}, Mock(sqlstate="23503"))
        assert not is_unique_violation(error)
