"""Admin workbook generator"""

import asyncio
import logging
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from modelvault.config import settings
from modelvault.models.user import UserRole
from modelvault.reports.report_aggregation import ReportAggregator, date_filters
from modelvault.schemas.report import (
    ActiveClientsSection,
    CreatorProjectsSection,
    DateRange,
    FavouritedProjectsSection,
    ReportOptions,
)
from modelvault.store.record_store import RecordStore, Filter

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, width) per sheet, in column order
CREATOR_PROJECT_COLUMNS = [
    ("user_id", 12),
    ("username", 25),
    ("project_id", 12),
    ("project_name", 35),
    ("created_at", 20),
    ("status", 15),
    ("project_count_total", 20),
    ("model_count_total", 20),
]

TOP_FAVOURITE_COLUMNS = [
    ("project_id", 12),
    ("project_name", 35),
    ("creator_id", 12),
    ("creator_username", 25),
    ("favourite_count", 20),
    ("last_favourited_at", 20),
]

ACTIVE_CLIENT_COLUMNS = [
    ("client_id", 12),
    ("client_name", 30),
    ("status", 15),
    ("last_activity_at", 20),
    ("projects_assigned_count", 25),
]


class AdminReportGenerator:
    """
    Generator for the admin workbook.

    Only the sections requested in ReportOptions are fetched. Requested
    sections are fetched concurrently; the workbook is built once all of
    them have resolved.
    """

    def __init__(self, store: RecordStore):
        """Initialize with record store"""
        self.store = store

    # ------------------------------------------------------------------
    # Section fetches
    # ------------------------------------------------------------------

    async def fetch_creator_projects(
        self, date_range: Optional[DateRange] = None
    ) -> CreatorProjectsSection:
        projects, models = await asyncio.gather(
            self.store.select(
                "projects",
                date_filters(date_range),
                include=("creator", "status"),
                order_by="id",
            ),
            self.store.select("models"),
        )
        return ReportAggregator.creator_projects(projects, models, date_range)

    async def fetch_top_favourites(
        self, date_range: Optional[DateRange] = None
    ) -> FavouritedProjectsSection:
        favourites = await self.store.select(
            "user_favourites",
            date_filters(date_range),
            include=("version.model.project.creator",),
            order_by="id",
        )
        return ReportAggregator.top_favourited_projects(favourites, date_range)

    async def fetch_active_clients(
        self, date_range: Optional[DateRange] = None
    ) -> ActiveClientsSection:
        users, links = await asyncio.gather(
            self.store.select(
                "users",
                [
                    Filter.eq("role", UserRole.CLIENT.value),
                    Filter.eq("is_approved", True),
                    *date_filters(date_range),
                ],
                order_by="id",
            ),
            self.store.select("project_clients"),
        )
        return ReportAggregator.active_clients(users, links, date_range)

    # ------------------------------------------------------------------
    # Workbook
    # ------------------------------------------------------------------

    async def generate_report(self, options: ReportOptions) -> bytes:
        """
        Build the admin workbook.

        Args:
            options: Requested sections and optional date range

        Returns:
            The .xlsx file contents
        """
        date_range = options.date_range

        requested: List[Tuple[str, Any]] = []
        if options.creator_projects_summary:
            requested.append(("creator_projects", self.fetch_creator_projects(date_range)))
        if options.top_favourited_projects:
            requested.append(("top_favourites", self.fetch_top_favourites(date_range)))
        if options.active_clients_count:
            requested.append(("active_clients", self.fetch_active_clients(date_range)))

        results = await asyncio.gather(*(coro for _, coro in requested))
        sections: Dict[str, Any] = dict(zip((name for name, _ in requested), results))

        logger.info(f"Generating admin report with sections: {', '.join(sections) or 'none'}")

        workbook = Workbook()
        self._write_metadata(workbook.active, options)

        if "creator_projects" in sections:
            self._write_creator_projects(workbook, sections["creator_projects"])
        if "top_favourites" in sections:
            self._write_top_favourites(workbook, sections["top_favourites"])
        if "active_clients" in sections:
            self._write_active_clients(workbook, sections["active_clients"])

        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    def _write_metadata(self, sheet: Worksheet, options: ReportOptions) -> None:
        """Report type, generation time, date range and included sections"""
        sheet.title = "metadata"

        date_range = options.date_range or DateRange()
        rows = [
            ("report_type", "Admin Report"),
            ("generated_at", datetime.now(timezone.utc).isoformat()),
            ("date_range_start", date_range.start.isoformat() if date_range.start else "N/A"),
            ("date_range_end", date_range.end.isoformat() if date_range.end else "N/A"),
            ("includes_creator_projects", _yes_no(options.creator_projects_summary)),
            ("includes_top_favourites", _yes_no(options.top_favourited_projects)),
            ("includes_active_clients", _yes_no(options.active_clients_count)),
        ]
        for row in rows:
            sheet.append(row)

        sheet.column_dimensions["A"].width = 25
        sheet.column_dimensions["B"].width = 30
        for cell in sheet[1]:
            cell.font = Font(bold=True)

    def _write_creator_projects(self, workbook: Workbook, section: CreatorProjectsSection) -> None:
        sheet = self._add_table_sheet(
            workbook, "projects_per_creator", CREATOR_PROJECT_COLUMNS, [r.model_dump() for r in section.rows]
        )
        if section.rows:
            summary = section.summary
            self._append_summary(
                sheet,
                [
                    "SUMMARY",
                    f"Total Creators: {summary.creator_count}",
                    "",
                    f"Total Projects: {summary.project_count}",
                    "",
                    "",
                    "",
                    f"Total Models: {summary.model_count}",
                ],
            )

    def _write_top_favourites(self, workbook: Workbook, section: FavouritedProjectsSection) -> None:
        sheet = self._add_table_sheet(
            workbook, "top_favourites", TOP_FAVOURITE_COLUMNS, [r.model_dump() for r in section.rows]
        )
        if section.rows:
            summary = section.summary
            self._append_summary(
                sheet,
                [
                    "SUMMARY",
                    f"Total Projects: {summary.project_count}",
                    "",
                    "",
                    summary.favourite_count,
                    "",
                ],
            )

    def _write_active_clients(self, workbook: Workbook, section: ActiveClientsSection) -> None:
        sheet = self._add_table_sheet(
            workbook, "active_clients", ACTIVE_CLIENT_COLUMNS, [r.model_dump() for r in section.rows]
        )
        if section.rows:
            summary = section.summary
            self._append_summary(
                sheet,
                [
                    "SUMMARY",
                    f"Total Active Clients: {summary.client_count}",
                    "",
                    "",
                    summary.assigned_project_count,
                ],
            )

    @staticmethod
    def _add_table_sheet(
        workbook: Workbook,
        title: str,
        columns: Sequence[Tuple[str, int]],
        rows: Sequence[Dict[str, Any]],
    ) -> Worksheet:
        """Sheet with a styled header row followed by one row per record"""
        sheet = workbook.create_sheet(title)

        header_font = Font(bold=True)
        header_fill = PatternFill(
            fill_type="solid",
            start_color=settings.report_header_fill,
            end_color=settings.report_header_fill,
        )

        sheet.append([header for header, _ in columns])
        for index, (_, width) in enumerate(columns, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width
            cell = sheet.cell(row=1, column=index)
            cell.font = header_font
            cell.fill = header_fill

        for row in rows:
            sheet.append([row.get(header) for header, _ in columns])

        return sheet

    @staticmethod
    def _append_summary(sheet: Worksheet, values: Sequence[Any]) -> None:
        """Blank separator row, then a bold summary row"""
        sheet.append([])
        sheet.append(list(values))
        for cell in sheet[sheet.max_row]:
            cell.font = Font(bold=True)


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"
