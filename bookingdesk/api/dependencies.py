# ============================================================================
# FILE: bookingdesk/api/dependencies.py
# Shared FastAPI dependencies
# ============================================================================
from fastapi import Depends
from sqlalchemy.orm import Session

from bookingdesk.config.database import get_db
from bookingdesk.services.availability.availability_service import AvailabilityService


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Availability service bound to the request's database session"""
    return AvailabilityService.from_session(db)
