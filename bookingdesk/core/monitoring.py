"""Health checks for the API process, its database and the configured schedule"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookingdesk import __version__
from bookingdesk.config.database import get_db
from bookingdesk.models.availability import WorkingHours

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("")
async def health_check():
    """Liveness only; touches nothing"""
    return {"status": "healthy", "service": "bookingdesk-api", "version": __version__}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Database reachability plus a schedule sanity check.

    A database without any enabled working hours answers every availability
    question with "closed", so it is reported as degraded rather than healthy.
    """
    report = {"database": "unknown", "schedule": "unknown", "open_days": None}

    try:
        db.execute(text("SELECT 1"))
        report["database"] = "healthy"
        report["open_days"] = db.query(WorkingHours).filter(WorkingHours.enabled == True).count()
        report["schedule"] = "configured" if report["open_days"] else "empty"
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {e}")
        report["database"] = f"unhealthy: {e}"

    report["overall"] = "healthy" if report["database"] == "healthy" and report["schedule"] == "configured" else "degraded"
    return report
