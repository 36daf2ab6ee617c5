"""Aggregations behind the admin report sections"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from modelvault.models.user import UserRole
from modelvault.schemas.report import (
    ActiveClientRow,
    ActiveClientSummary,
    ActiveClientsSection,
    CreatorProjectRow,
    CreatorProjectSummary,
    CreatorProjectsSection,
    DateRange,
    FavouritedProjectRow,
    FavouritedProjectSummary,
    FavouritedProjectsSection,
)
from modelvault.services.graph_assembler import format_timestamp
from modelvault.store.record_store import Filter
from modelvault.store.relations import as_list, first_or_none

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def date_filters(date_range: Optional[DateRange], field: str = "created_at") -> List[Filter]:
    """Store filters for an inclusive creation-date window"""
    if date_range is None:
        return []

    filters = []
    lower, upper = date_range.lower_bound(), date_range.upper_bound()
    if lower is not None:
        filters.append(Filter.gte(field, lower))
    if upper is not None:
        filters.append(Filter.lte(field, upper))
    return filters


def _in_range(record: dict, date_range: Optional[DateRange]) -> bool:
    return date_range is None or date_range.contains(record.get("created_at"))


class ReportAggregator:
    """
    Aggregates flat store rows into the admin report sections.

    Each aggregation takes joined rows plus an optional creation-date window
    and returns its rows together with the section summary.
    """

    @staticmethod
    def creator_projects(
        projects: Sequence[dict],
        models: Sequence[dict],
        date_range: Optional[DateRange] = None,
    ) -> CreatorProjectsSection:
        """
        Creator / project / model rollup.

        Args:
            projects: Project records with embedded creator and status
            models: Model records (only project_id is read)
            date_range: Window applied to project creation time

        Returns:
            One row per project. Each row repeats its creator's project
            count; the model count is per project.
        """
        model_counts = Counter(
            m.get("project_id") for m in as_list(models) if isinstance(m, dict)
        )

        selected = []
        for project in as_list(projects):
            creator = first_or_none(project.get("creator"))
            if creator is None or creator.get("role") != UserRole.CREATOR.value:
                continue
            if not _in_range(project, date_range):
                continue
            selected.append((project, creator))

        project_counts = Counter(project["creator_id"] for project, _ in selected)

        rows = [
            CreatorProjectRow(
                user_id=creator["id"],
                username=creator.get("full_name") or UNKNOWN,
                project_id=project["id"],
                project_name=project.get("name") or "",
                created_at=format_timestamp(project.get("created_at")) or "",
                status=(first_or_none(project.get("status")) or {}).get("status") or UNKNOWN,
                project_count_total=project_counts[project["creator_id"]],
                model_count_total=model_counts[project["id"]],
            )
            for project, creator in selected
        ]

        summary = CreatorProjectSummary(
            creator_count=len({row.user_id for row in rows}),
            project_count=len(rows),
            model_count=sum(row.model_count_total for row in rows),
        )
        return CreatorProjectsSection(rows=rows, summary=summary)

    @staticmethod
    def top_favourited_projects(
        favourites: Sequence[dict],
        date_range: Optional[DateRange] = None,
    ) -> FavouritedProjectsSection:
        """
        Projects ranked by how often their versions were favourited.

        Args:
            favourites: Favourite records joined version -> model -> project -> creator
            date_range: Window applied to favourite creation time

        Returns:
            Rows sorted by favourite count, descending. Equal counts keep the
            order in which the projects were first encountered.
        """
        groups: Dict[int, dict] = {}

        for favourite in as_list(favourites):
            if not _in_range(favourite, date_range):
                continue

            version = first_or_none(favourite.get("version"))
            model = first_or_none(version.get("model")) if version else None
            project = first_or_none(model.get("project")) if model else None
            if project is None:
                logger.warning(f"Favourite {favourite.get('id')} has no project, skipping")
                continue

            group = groups.get(project["id"])
            if group is None:
                creator = first_or_none(project.get("creator")) or {}
                group = {
                    "project_id": project["id"],
                    "project_name": project.get("name") or "",
                    "creator_id": project.get("creator_id"),
                    "creator_username": creator.get("full_name") or UNKNOWN,
                    "favourite_count": 0,
                    "last": None,
                }
                groups[project["id"]] = group

            group["favourite_count"] += 1
            created_at = favourite.get("created_at")
            if created_at is not None and (group["last"] is None or created_at > group["last"]):
                group["last"] = created_at

        ranked = sorted(groups.values(), key=lambda g: g["favourite_count"], reverse=True)

        rows = [
            FavouritedProjectRow(
                project_id=g["project_id"],
                project_name=g["project_name"],
                creator_id=g["creator_id"],
                creator_username=g["creator_username"],
                favourite_count=g["favourite_count"],
                last_favourited_at=format_timestamp(g["last"]),
            )
            for g in ranked
        ]

        summary = FavouritedProjectSummary(
            project_count=len(rows),
            favourite_count=sum(row.favourite_count for row in rows),
        )
        return FavouritedProjectsSection(rows=rows, summary=summary)

    @staticmethod
    def active_clients(
        users: Sequence[dict],
        project_links: Sequence[dict],
        date_range: Optional[DateRange] = None,
    ) -> ActiveClientsSection:
        """
        Approved clients with the number of projects assigned to each.

        Args:
            users: User records; non-clients and unapproved users are ignored
            project_links: project_clients rows
            date_range: Window applied to user creation time
        """
        assigned = Counter(
            link.get("user_id") for link in as_list(project_links) if isinstance(link, dict)
        )

        rows = [
            ActiveClientRow(
                client_id=user["id"],
                client_name=user.get("full_name") or UNKNOWN,
                status="Active",
                last_activity_at=format_timestamp(user.get("created_at")),
                projects_assigned_count=assigned[user["id"]],
            )
            for user in as_list(users)
            if user.get("role") == UserRole.CLIENT.value
            and user.get("is_approved")
            and _in_range(user, date_range)
        ]

        summary = ActiveClientSummary(
            client_count=len(rows),
            assigned_project_count=sum(row.projects_assigned_count for row in rows),
        )
        return ActiveClientsSection(rows=rows, summary=summary)
