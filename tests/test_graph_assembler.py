"""Unit tests for the graph assembler and the client view loader"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from modelvault.config import settings
from modelvault.schemas.user import CurrentUser
from modelvault.services.current_user import NotAuthenticatedError, StaticCurrentUserProvider
from modelvault.services.graph_assembler import (
    ClientViewLoader,
    assemble_client_view,
    assemble_creator_view,
    assemble_model,
)


def project_row(**overrides):
    row = {
        "id": 1,
        "name": "Wedding Set",
        "start_date": "2024-05-01",
        "status": {"status": "Active"},
        "clients": [{"user_id": 9}],
        "models": [
            {
                "id": 11,
                "name": "Mandap",
                "category": {"name": "Stage"},
                "status": {"status": "Approved"},
                "versions": [
                    {"id": 101, "version": 1, "images": [{"id": 1, "image_path": "A.png"}]},
                    {
                        "id": 102,
                        "version": 2,
                        "thumbnail_url": "C.png",
                        "can_download": True,
                        "images": [
                            {"id": 2, "image_path": "B.png"},
                            {"id": 3, "image_path": "C.png"},
                        ],
                    },
                ],
            }
        ],
    }
    row.update(overrides)
    return row


class TestAssembleModel:
    """Test model view derivation"""

    def test_latest_version_and_labels(self):
        model = assemble_model(project_row()["models"][0])

        assert model.version == "2"
        assert model.versions == ["2", "1"]
        assert model.thumbnail_url == "C.png"
        assert model.version_thumbnails == {"2": "C.png", "1": "A.png"}
        assert model.version_ids == {"2": 102, "1": 101}
        assert model.version_download_status == {"2": True, "1": False}

    def test_defaults_for_missing_joins(self):
        model = assemble_model({"id": 5, "name": "Chair", "category": None, "status": []})

        assert model.category == "Uncategorized"
        assert model.status == "Draft"

    def test_zero_versions(self):
        model = assemble_model({"id": 5, "name": "Chair", "versions": []})

        assert model.version == "1.0"
        assert model.versions == ["1.0"]
        assert model.thumbnail_url == settings.placeholder_thumbnail


class TestAssembleCreatorView:
    """Test creator dashboard assembly"""

    def test_project_tree(self):
        [project] = assemble_creator_view([project_row()])

        assert project.name == "Wedding Set"
        assert project.status == "Active"
        assert project.model_count == 1
        assert project.client_ids == [9]
        assert project.models[0].name == "Mandap"

    def test_malformed_models_degrade_to_empty(self):
        """A non-list model relation does not fail the project"""
        projects = assemble_creator_view([project_row(models=42), project_row(id=2, models=None)])

        assert [p.model_count for p in projects] == [0, 0]

    def test_malformed_model_entries_are_skipped(self):
        [project] = assemble_creator_view([project_row(models=["junk", {"name": "no id"}])])
        assert project.models == []

    def test_missing_status_and_date(self):
        [project] = assemble_creator_view([project_row(status=None, start_date=None)])

        assert project.status == "Active"
        assert project.start_date == ""


class TestAssembleClientView:
    """Test client dashboard assembly"""

    def test_models_only_for_known_projects(self):
        view = assemble_client_view(
            [{"id": 1, "name": "P1", "status": None, "creator_id": 3}],
            {1: 4},
            {1: [], 99: []},
        )

        assert view.projects[0].model_count == 4
        assert view.projects[0].creator_id == 3
        assert list(view.models_by_project) == [1]


class TestClientViewLoader:
    """Test lazy per-project loading"""

    @pytest.fixture
    def loader_store(self):
        store = AsyncMock()
        store.select.return_value = [project_row()["models"][0]]
        return store

    @pytest.fixture
    def client_user(self):
        return StaticCurrentUserProvider(CurrentUser(id=9, role="client"))

    @pytest.mark.asyncio
    async def test_double_expand_fetches_once(self, loader_store, client_user):
        """Expanding a project twice while loading issues one fetch"""
        loader = ClientViewLoader(loader_store, client_user)

        first, second = await asyncio.gather(
            loader.load_project_models(1), loader.load_project_models(1)
        )

        assert loader_store.select.await_count == 1
        assert first == second
        assert first[0].name == "Mandap"

    @pytest.mark.asyncio
    async def test_refresh_reloads(self, loader_store, client_user):
        loader = ClientViewLoader(loader_store, client_user)

        await loader.load_project_models(1)
        loader.refresh_project(1)
        await loader.load_project_models(1)

        assert loader_store.select.await_count == 2

    @pytest.mark.asyncio
    async def test_requires_current_user(self, loader_store):
        loader = ClientViewLoader(loader_store, StaticCurrentUserProvider(None))

        with pytest.raises(NotAuthenticatedError):
            await loader.load_projects()

    @pytest.mark.asyncio
    async def test_load_view_from_store(self, store, seeded):
        """Assigned projects with counts, expanded projects with models"""
        user = StaticCurrentUserProvider(CurrentUser(id=seeded["client"]["id"], role="client"))
        loader = ClientViewLoader(store, user)
        project_id = seeded["project"]["id"]

        collapsed = await loader.load_view()
        assert [p.name for p in collapsed.projects] == ["Wedding Set"]
        assert collapsed.projects[0].model_count == 1
        assert collapsed.models_by_project == {}

        expanded = await loader.load_view(expanded=[project_id])
        [model] = expanded.models_by_project[project_id]
        assert model.version == "2"
        assert model.thumbnail_url == "https://cdn/img/C.png"
        assert model.category == "Stage"

    @pytest.mark.asyncio
    async def test_unassigned_user_sees_nothing(self, store, seeded):
        user = StaticCurrentUserProvider(CurrentUser(id=seeded["creator"]["id"], role="creator"))
        view = await ClientViewLoader(store, user).load_view()
        assert view.projects == []
