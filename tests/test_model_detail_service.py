"""Tests for model details and comments"""

from datetime import datetime

import pytest

from modelvault.schemas.user import CurrentUser
from modelvault.services.current_user import NotAuthenticatedError, StaticCurrentUserProvider
from modelvault.services.model_detail_service import ModelDetailService, assemble_comment


@pytest.fixture
def service(store):
    return ModelDetailService(store)


class TestAssembleComment:
    """Test author flattening"""

    def test_missing_author(self):
        comment = assemble_comment({"id": 1, "version_id": 2, "user_id": 3, "text": "Nice", "author": None})

        assert comment.user.full_name == "Unknown"
        assert comment.user.role == "user"
        assert comment.user.photo_url is None


class TestModelDetails:
    """Test the model summary and version history"""

    @pytest.mark.asyncio
    async def test_details_flattened(self, service, seeded):
        details = await service.fetch_model_details(seeded["model"]["id"])

        assert details["name"] == "Mandap"
        assert details["project_name"] == "Wedding Set"
        assert details["category"] == "Stage"
        assert details["status"] == "Draft"

    @pytest.mark.asyncio
    async def test_missing_model(self, service, seeded):
        assert await service.fetch_model_details(999) is None

    @pytest.mark.asyncio
    async def test_versions_newest_first(self, service, seeded):
        versions = await service.fetch_model_versions(seeded["model"]["id"])

        assert [v["version"] for v in versions] == [2, 1]
        assert [i["image_path"] for i in versions[0]["images"]] == [
            "https://cdn/img/B.png",
            "https://cdn/img/C.png",
        ]


class TestComments:
    """Test posting, listing and deleting comments"""

    @pytest.mark.asyncio
    async def test_post_and_list_newest_first(self, service, store, seeded):
        version_id = seeded["v2"]["id"]
        client = seeded["client"]
        await store.insert(
            "comments",
            {"version_id": version_id, "user_id": client["id"], "text": "First", "created_at": datetime(2024, 1, 1)},
        )

        provider = StaticCurrentUserProvider(CurrentUser(id=seeded["creator"]["id"], role="creator"))
        posted = await service.post_comment(version_id, "  Updated the canopy  ", provider)
        assert posted["text"] == "Updated the canopy"

        comments = await service.fetch_comments(version_id)
        assert [c.text for c in comments] == ["Updated the canopy", "First"]
        assert comments[0].user.full_name == "Asha Creator"
        assert comments[0].user.role == "creator"

        await service.delete_comment(posted["id"])
        assert [c.text for c in await service.fetch_comments(version_id)] == ["First"]

    @pytest.mark.asyncio
    async def test_empty_comment_rejected(self, service, seeded):
        provider = StaticCurrentUserProvider(CurrentUser(id=seeded["client"]["id"], role="client"))

        with pytest.raises(ValueError):
            await service.post_comment(seeded["v2"]["id"], "   ", provider)

    @pytest.mark.asyncio
    async def test_post_requires_user(self, service, seeded):
        with pytest.raises(NotAuthenticatedError):
            await service.post_comment(seeded["v2"]["id"], "Hi", StaticCurrentUserProvider(None))
