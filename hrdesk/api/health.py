import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.db.models import Employee
from hrdesk.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Service liveness")
async def health() -> dict:
    return {
        "status": "Healthy",
        "service": "HRDesk API",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/database", summary="Database connectivity")
async def database_health(db: AsyncSession = Depends(get_db)):
    try:
        employee_count = (
            await db.execute(select(func.count()).select_from(Employee))
        ).scalar_one()
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return JSONResponse(
            status_code=503,
            content={
                "status": "Unhealthy",
                "database": "Error",
                "error": "Database unavailable",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    return {
        "status": "Healthy",
        "database": "Connected",
        "employee_count": employee_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
