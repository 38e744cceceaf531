"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.config import settings
from tisorah_admin.dependencies import get_db
from tisorah_admin.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Return service health status.

    Checks database connectivity and reports whether object storage
    credentials are configured (storage itself is not called).
    """
    services = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        db_status = "ok"
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"

    services["database"] = db_status
    services["storage"] = "ok" if settings.STORAGE_API_KEY else "unconfigured"

    overall_status = "ok" if db_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        services=services,
    )
