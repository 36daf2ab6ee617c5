"""API routes for report generation"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from modelvault.api.dependencies import get_store, require_admin
from modelvault.config import settings
from modelvault.reports.admin_report_generator import AdminReportGenerator, XLSX_MEDIA_TYPE
from modelvault.schemas.report import ReportOptions
from modelvault.schemas.user import CurrentUser
from modelvault.store.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.post("/admin")
async def generate_admin_report(
    options: ReportOptions,
    store: RecordStore = Depends(get_store),
    current_user: CurrentUser = Depends(require_admin),
):
    """
    Generate the admin workbook.
    Only the requested sections are computed; the file is returned as an attachment.
    """
    generator = AdminReportGenerator(store)
    content = await generator.generate_report(options)

    logger.info(f"Admin report generated for user {current_user.id} ({len(content)} bytes)")

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{settings.report_filename}"'},
    )
