"""Health check endpoints"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from sqlalchemy import text

from modelvault.database import AsyncSessionLocal

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """
    Health check (no authentication required)

    Reports overall status, a timestamp and database connectivity
    """
    overall_status = "healthy"

    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar_one()
        database = "connected"
    except Exception as e:
        database = f"disconnected: {str(e)}"
        overall_status = "degraded"

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {"database": database},
    }
