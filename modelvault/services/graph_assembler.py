"""Assembles flat store results into project -> model -> version view trees"""

import asyncio
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from modelvault.config import settings
from modelvault.schemas.graph import ModelView, ProjectView, ClientProjectView, ClientView
from modelvault.services.current_user import CurrentUserProvider
from modelvault.services.load_cache import LoadCache
from modelvault.services.version_resolution import (
    sort_versions,
    version_label,
    resolve_thumbnail,
)
from modelvault.store.record_store import RecordStore, Filter
from modelvault.store.relations import as_list, related_value

logger = logging.getLogger(__name__)

# Relations embedded when fetching projects for the creator dashboard
CREATOR_PROJECT_INCLUDE = (
    "status",
    "clients",
    "models.status",
    "models.category",
    "models.versions.images",
)

# Relations embedded when fetching one project's models for the client dashboard
CLIENT_MODEL_INCLUDE = (
    "status",
    "category",
    "versions.images",
)

# Shown for a model that has no versions yet
DEFAULT_VERSION_LABEL = "1.0"


def format_date(value) -> str:
    """ISO date (YYYY-MM-DD) for a date, datetime or ISO string; empty when absent"""
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def format_timestamp(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def assemble_model(model: dict) -> ModelView:
    """
    Build a model view from a model record with embedded status, category
    and versions (each with images).

    The current version and thumbnail are derived from the version list on
    every call.
    """
    versions = [v for v in sort_versions(model.get("versions")) if isinstance(v, dict)]
    latest = versions[0] if versions else None

    labels = []
    version_thumbnails: Dict[str, str] = {}
    version_ids: Dict[str, int] = {}
    version_download_status: Dict[str, bool] = {}

    for version in versions:
        label = version_label(version)
        labels.append(label)
        # Duplicate numbers: keep the first (stable) entry
        version_thumbnails.setdefault(label, resolve_thumbnail(version))
        if version.get("id") is not None:
            version_ids.setdefault(label, version["id"])
        version_download_status.setdefault(label, bool(version.get("can_download")))

    return ModelView(
        id=model["id"],
        name=model.get("name") or "",
        category=related_value(model, "category", "name", settings.default_model_category),
        status=related_value(model, "status", "status", settings.default_model_status),
        version=version_label(latest) if latest else DEFAULT_VERSION_LABEL,
        thumbnail_url=resolve_thumbnail(latest),
        versions=labels or [DEFAULT_VERSION_LABEL],
        version_thumbnails=version_thumbnails,
        version_ids=version_ids,
        version_download_status=version_download_status,
        created_at=format_timestamp(model.get("created_at")),
    )


def assemble_models(models: Iterable) -> List[ModelView]:
    """Assemble a model list, skipping entries that are not records"""
    assembled = []
    for model in as_list(models):
        if not isinstance(model, dict) or model.get("id") is None:
            logger.warning(f"Skipping malformed model entry: {model!r}")
            continue
        assembled.append(assemble_model(model))
    return assembled


def assemble_project(project: dict) -> ProjectView:
    """Build a creator project view with its full model tree"""
    models = assemble_models(project.get("models"))
    client_ids = [
        link["user_id"]
        for link in as_list(project.get("clients"))
        if isinstance(link, dict) and link.get("user_id") is not None
    ]

    return ProjectView(
        id=project["id"],
        name=project.get("name") or "",
        start_date=format_date(project.get("start_date")),
        model_count=len(models),
        status=related_value(project, "status", "status", settings.default_project_status),
        models=models,
        client_ids=client_ids,
    )


def assemble_creator_view(flat_projects: Sequence[dict]) -> List[ProjectView]:
    """
    Build the creator dashboard from one row per project with nested
    models/versions/images. A malformed nested model list degrades to an
    empty one rather than failing the project.
    """
    return [assemble_project(p) for p in as_list(flat_projects) if isinstance(p, dict)]


def assemble_client_project(project: dict, model_count: int = 0) -> ClientProjectView:
    return ClientProjectView(
        id=project["id"],
        name=project.get("name") or "",
        start_date=format_date(project.get("start_date")),
        status=related_value(project, "status", "status", settings.default_project_status),
        creator_id=project.get("creator_id"),
        model_count=model_count,
    )


def assemble_client_view(
    flat_projects: Sequence[dict],
    model_counts: Optional[Dict[int, int]] = None,
    models_by_project: Optional[Dict[int, List[ModelView]]] = None,
) -> ClientView:
    """
    Build the client dashboard.

    Args:
        flat_projects: Project records with embedded status
        model_counts: project id -> number of models
        models_by_project: Models already loaded for expanded projects

    Returns:
        ClientView with projects and whichever model lists are loaded
    """
    model_counts = model_counts or {}
    projects = [
        assemble_client_project(p, model_counts.get(p["id"], 0))
        for p in as_list(flat_projects)
        if isinstance(p, dict)
    ]
    project_ids = {p.id for p in projects}

    return ClientView(
        projects=projects,
        models_by_project={
            pid: models
            for pid, models in (models_by_project or {}).items()
            if pid in project_ids
        },
    )


class ClientViewLoader:
    """
    Loads the client dashboard for the current user.

    Project models are fetched lazily, one project at a time, through a
    LoadCache so a project is fetched at most once even when expanded twice
    while the first load is still running.
    """

    def __init__(
        self,
        store: RecordStore,
        user_provider: CurrentUserProvider,
        cache: Optional[LoadCache] = None,
    ):
        self.store = store
        self.user_provider = user_provider
        self.cache = cache or LoadCache()

    async def fetch_project_records(self) -> List[dict]:
        """Projects assigned to the current user, newest first"""
        user = self.user_provider.get_current_user()

        links = await self.store.select("project_clients", [Filter.eq("user_id", user.id)])
        project_ids = list(dict.fromkeys(link["project_id"] for link in links))
        if not project_ids:
            return []

        return await self.store.select(
            "projects",
            [Filter.isin("id", project_ids)],
            include=("status",),
            order_by="id",
            descending=True,
        )

    async def count_models(self, project_ids: Sequence[int]) -> Dict[int, int]:
        counts = await asyncio.gather(
            *(self.store.count("models", [Filter.eq("project_id", pid)]) for pid in project_ids)
        )
        return dict(zip(project_ids, counts))

    async def load_projects(self) -> List[ClientProjectView]:
        """Assigned projects with model counts, without their models"""
        return (await self.load_view()).projects

    async def load_project_models(self, project_id: int) -> List[ModelView]:
        """Models of one project; repeated calls reuse the cached or in-flight load"""
        return await self.cache.get_or_load(
            project_id, lambda: self._fetch_project_models(project_id)
        )

    async def _fetch_project_models(self, project_id: int) -> List[ModelView]:
        logger.info(f"Loading models for project {project_id}")
        records = await self.store.select(
            "models",
            [Filter.eq("project_id", project_id)],
            include=CLIENT_MODEL_INCLUDE,
            order_by="id",
        )
        return assemble_models(records)

    async def load_view(self, expanded: Sequence[int] = ()) -> ClientView:
        """
        Client dashboard with the models of `expanded` projects loaded.

        Previously expanded projects stay in the view from the cache.
        """
        records = await self.fetch_project_records()
        counts = await self.count_models([p["id"] for p in records])

        if expanded:
            await asyncio.gather(*(self.load_project_models(pid) for pid in expanded))

        return assemble_client_view(records, counts, self.cache.snapshot())

    def refresh_project(self, project_id: int) -> None:
        """Forget a project's loaded models, e.g. after a new version is uploaded"""
        self.cache.invalidate(project_id)
