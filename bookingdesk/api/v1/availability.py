# ============================================================================
# bookingdesk/api/v1/availability.py
# Availability checks and rule administration - thin HTTP layer
# ============================================================================
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from bookingdesk.api.dependencies import get_availability_service
from bookingdesk.config.database import get_db
from bookingdesk.config.settings import settings
from bookingdesk.core.exceptions import AvailabilityEvaluationError, NotFoundError
from bookingdesk.models.availability import BlackoutDate, BreakTime, RecurringPattern
from bookingdesk.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityVerdict,
    BlackoutDateCreate,
    BlackoutDateOut,
    BreakTimeCreate,
    BreakTimeOut,
    RecurringPatternCreate,
    RecurringPatternOut,
    RecurringPatternUpdate,
    WorkingHoursOut,
    WorkingHoursUpdate,
    WorkingHoursUpsert,
    BlackoutDateUpdate,
    BreakTimeUpdate,
)
from bookingdesk.services.availability.availability_service import AvailabilityService
from bookingdesk.services.availability.rule_admin_service import RuleAdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])


def _evaluation_failed(e: AvailabilityEvaluationError) -> HTTPException:
    logger.error(f"Availability evaluation failed: {e}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Availability could not be determined"
    )


def _updated(update, db: Session, key: int, payload):
    """Run a partial rule update; 404 for an unknown rule, 422 when the merged rule is invalid"""
    try:
        return update(db, key, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ========== AVAILABILITY CHECKS ==========

@router.post("/check", response_model=AvailabilityVerdict, response_model_exclude_none=True)
async def check_availability(
        payload: AvailabilityCheckRequest,
        service: AvailabilityService = Depends(get_availability_service)
):
    """Check whether a specific date/time can be booked"""
    try:
        return service.check_availability(payload.datetime)
    except AvailabilityEvaluationError as e:
        raise _evaluation_failed(e)


@router.get("/slots")
async def get_available_slots(
        date: date = Query(..., description="Date in YYYY-MM-DD format"),
        duration: int = Query(settings.DEFAULT_SLOT_DURATION_MINUTES, ge=1, le=1440,
                              description="Slot length in minutes"),
        service: AvailabilityService = Depends(get_availability_service)
):
    """Time slots for one day with their availability"""
    try:
        slots = service.get_available_slots(date, duration)
    except AvailabilityEvaluationError as e:
        raise _evaluation_failed(e)

    return {
        "date": date.isoformat(),
        "duration_minutes": duration,
        "slots": [slot.model_dump(mode="json") for slot in slots]
    }


@router.get("/dates")
async def get_available_dates(
        days: int = Query(settings.DEFAULT_DATE_RANGE_DAYS, ge=0, le=settings.MAX_DATE_RANGE_DAYS,
                          description="How many days to look ahead"),
        service: AvailabilityService = Depends(get_availability_service)
):
    """Day-level availability starting today"""
    dates = service.get_available_dates(days)
    return {"dates": [entry.model_dump(mode="json") for entry in dates]}


# ========== WORKING HOURS ==========

@router.get("/working-hours")
async def list_working_hours(db: Session = Depends(get_db)):
    hours = RuleAdminService.list_working_hours(db)
    return {"working_hours": [WorkingHoursOut.model_validate(h) for h in hours]}


@router.post("/working-hours", response_model=WorkingHoursOut)
async def upsert_working_hours(payload: WorkingHoursUpsert, db: Session = Depends(get_db)):
    """Create or update the working hours of one weekday"""
    return RuleAdminService.upsert_working_hours(db, payload)


@router.put("/working-hours/{day_of_week}", response_model=WorkingHoursOut)
async def update_working_hours(
        payload: WorkingHoursUpdate,
        day_of_week: int = Path(..., ge=0, le=6),
        db: Session = Depends(get_db)
):
    """Change the times or the enabled flag of an existing weekday"""
    return _updated(RuleAdminService.update_working_hours, db, day_of_week, payload)


@router.delete("/working-hours/{day_of_week}")
async def delete_working_hours(
        day_of_week: int = Path(..., ge=0, le=6),
        db: Session = Depends(get_db)
):
    try:
        RuleAdminService.delete_working_hours(db, day_of_week)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "day_of_week": day_of_week}


# ========== BREAKS ==========

@router.get("/breaks")
async def list_breaks(db: Session = Depends(get_db)):
    return {"breaks": [BreakTimeOut.model_validate(b) for b in RuleAdminService.list_breaks(db)]}


@router.post("/breaks", response_model=BreakTimeOut, status_code=201)
async def create_break(payload: BreakTimeCreate, db: Session = Depends(get_db)):
    return RuleAdminService.create_break(db, payload)


@router.put("/breaks/{break_id}", response_model=BreakTimeOut)
async def update_break(payload: BreakTimeUpdate, break_id: int, db: Session = Depends(get_db)):
    return _updated(RuleAdminService.update_break, db, break_id, payload)


@router.delete("/breaks/{break_id}")
async def delete_break(break_id: int, db: Session = Depends(get_db)):
    try:
        RuleAdminService.delete_rule(db, BreakTime, break_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "id": break_id}


# ========== BLACKOUT DATES ==========

@router.get("/blackout-dates")
async def list_blackout_dates(
        active: bool = Query(False, description="Only active blackouts"),
        db: Session = Depends(get_db)
):
    blackouts = RuleAdminService.list_blackout_dates(db, active_only=active)
    return {"blackout_dates": [BlackoutDateOut.model_validate(b) for b in blackouts]}


@router.post("/blackout-dates", response_model=BlackoutDateOut, status_code=201)
async def create_blackout_date(payload: BlackoutDateCreate, db: Session = Depends(get_db)):
    return RuleAdminService.create_blackout_date(db, payload)


@router.put("/blackout-dates/{blackout_id}", response_model=BlackoutDateOut)
async def update_blackout_date(payload: BlackoutDateUpdate, blackout_id: int, db: Session = Depends(get_db)):
    return _updated(RuleAdminService.update_blackout_date, db, blackout_id, payload)


@router.delete("/blackout-dates/{blackout_id}")
async def delete_blackout_date(blackout_id: int, db: Session = Depends(get_db)):
    try:
        RuleAdminService.delete_rule(db, BlackoutDate, blackout_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "id": blackout_id}


# ========== RECURRING PATTERNS ==========

@router.get("/recurring-patterns")
async def list_recurring_patterns(
        active: bool = Query(False, description="Only active patterns"),
        db: Session = Depends(get_db)
):
    patterns = RuleAdminService.list_recurring_patterns(db, active_only=active)
    return {"patterns": [RecurringPatternOut.model_validate(p) for p in patterns]}


@router.post("/recurring-patterns", response_model=RecurringPatternOut, status_code=201)
async def create_recurring_pattern(payload: RecurringPatternCreate, db: Session = Depends(get_db)):
    return RuleAdminService.create_recurring_pattern(db, payload)


@router.put("/recurring-patterns/{pattern_id}", response_model=RecurringPatternOut)
async def update_recurring_pattern(payload: RecurringPatternUpdate, pattern_id: int, db: Session = Depends(get_db)):
    return _updated(RuleAdminService.update_recurring_pattern, db, pattern_id, payload)


@router.delete("/recurring-patterns/{pattern_id}")
async def delete_recurring_pattern(pattern_id: int, db: Session = Depends(get_db)):
    try:
        RuleAdminService.delete_rule(db, RecurringPattern, pattern_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "id": pattern_id}
