# ============================================================================
# bookingdesk/api/v1/appointments.py
# Booking endpoints - thin HTTP layer
# ============================================================================
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from bookingdesk.config.database import get_db
from bookingdesk.core.exceptions import AvailabilityEvaluationError, NotFoundError, SlotUnavailableError
from bookingdesk.schemas.appointment import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentStats,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from bookingdesk.services.appointment.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", status_code=201)
async def create_appointment(payload: AppointmentCreate, db: Session = Depends(get_db)):
    """
    Submit an appointment request.
    The slot is re-checked and reserved atomically; a slot that cannot be
    confirmed available is never booked.
    """
    try:
        appointment = AppointmentService.book_appointment(db, payload)
    except SlotUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except AvailabilityEvaluationError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Availability could not be confirmed, please try again"
        )

    return {
        "message": "Appointment request submitted successfully",
        "appointment": AppointmentOut.model_validate(appointment)
    }


@router.get("")
async def list_appointments(
        status_filter: Optional[str] = Query(None, alias="status",
                                             description="Filter by status (scheduled, confirmed, completed, cancelled, no-show)"),
        date_from: Optional[date] = Query(None, alias="from", description="Appointments on or after this date"),
        date_to: Optional[date] = Query(None, alias="to", description="Appointments on or before this date"),
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
        db: Session = Depends(get_db)
):
    appointments = AppointmentService.list_appointments(
        db=db,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=limit
    )
    return {
        "total": len(appointments),
        "appointments": [AppointmentOut.model_validate(a) for a in appointments]
    }


@router.get("/upcoming")
async def list_upcoming_appointments(
        days: int = Query(7, ge=1, le=365, description="How many days ahead to look"),
        limit: int = Query(20, ge=1, le=500),
        db: Session = Depends(get_db)
):
    """Active appointments from now on, soonest first"""
    appointments = AppointmentService.list_upcoming(db, days=days, limit=limit)
    return {
        "count": len(appointments),
        "appointments": [AppointmentOut.model_validate(a) for a in appointments]
    }


@router.get("/stats/summary", response_model=AppointmentStats)
async def get_appointment_stats(db: Session = Depends(get_db)):
    return AppointmentService.get_stats(db)


@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    try:
        return AppointmentService.get_appointment(db, appointment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{appointment_id}/status", response_model=AppointmentOut)
async def update_appointment_status(
        payload: AppointmentStatusUpdate,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    """Confirm, complete, cancel or mark an appointment as no-show"""
    try:
        return AppointmentService.update_status(db, appointment_id, payload.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SlotUnavailableError as e:
        raise HTTPException(status_code=409, detail=e.reason)
    except AvailabilityEvaluationError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Availability could not be confirmed, please try again"
        )


@router.put("/{appointment_id}")
async def update_appointment(
        payload: AppointmentUpdate,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    """
    Edit an appointment. A new appointment_at reschedules it; the new slot is
    checked and reserved the same way as a fresh booking.
    """
    try:
        appointment = AppointmentService.update_appointment(db, appointment_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SlotUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except AvailabilityEvaluationError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Availability could not be confirmed, please try again"
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "message": "Appointment updated successfully",
        "appointment": AppointmentOut.model_validate(appointment)
    }


@router.delete("/{appointment_id}")
async def delete_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    try:
        AppointmentService.delete_appointment(db, appointment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Appointment deleted successfully", "id": str(appointment_id)}
