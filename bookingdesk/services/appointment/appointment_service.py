# ============================================================================
# bookingdesk/services/appointment/appointment_service.py
# Booking flow and appointment changes
# ============================================================================
"""
Service for booking and managing appointments.

Anything that puts an appointment on the calendar (a new booking, a reschedule,
or moving a cancelled/completed/no-show appointment back to an active status)
re-checks availability and writes inside a single transaction. Two concurrent
requests for the same instant cannot both commit: the partial unique index
uq_appointments_active_slot rejects the second write, and on PostgreSQL a
transaction-scoped advisory lock additionally serialises the check-then-write
sequence against the shared calendar.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookingdesk.core.exceptions import NotFoundError, SlotUnavailableError
from bookingdesk.models.appointment import Appointment, APPOINTMENT_STATUSES, ACTIVE_STATUSES
from bookingdesk.schemas.appointment import AppointmentCreate, AppointmentUpdate
from bookingdesk.services.availability.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

SLOT_TAKEN_REASON = "Time slot already booked"

# Arbitrary constant identifying the shared calendar for pg_advisory_xact_lock
BOOKING_LOCK_KEY = 7_240_118

# Fields an update may not clear
_REQUIRED_FIELDS = ("status", "appointment_at", "service_type", "location")


def normalize_slot_instant(instant: datetime) -> datetime:
    """Naive local wall-clock instant truncated to the minute"""
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant.replace(second=0, microsecond=0)


class AppointmentService:
    """Handles appointment operations"""

    @staticmethod
    def book_appointment(
            db: Session,
            data: AppointmentCreate,
            clock: Callable[[], datetime] = datetime.now
    ) -> Appointment:
        """
        Create a scheduled appointment if the slot is available.

        Raises:
            SlotUnavailableError: a rule rejected the instant or another booking won the slot
            AvailabilityEvaluationError: availability could not be confirmed; nothing is booked
        """
        appointment_at = normalize_slot_instant(data.appointment_at)

        try:
            AppointmentService._claim_slot(db, appointment_at, clock)

            appointment = Appointment(
                full_name=data.full_name,
                email=data.email,
                phone=data.phone,
                appointment_at=appointment_at,
                service_type=data.service_type,
                location=data.location,
                source=data.source,
                notes=data.notes or "",
                status="scheduled",
            )
            db.add(appointment)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.info(f"Concurrent booking won slot {appointment_at.isoformat()}: {e.orig}")
            raise SlotUnavailableError(SLOT_TAKEN_REASON) from e
        except Exception:
            db.rollback()
            raise

        db.refresh(appointment)
        logger.info(f"Booked appointment {appointment.id} at {appointment_at.isoformat()}")
        return appointment

    @staticmethod
    def update_status(
            db: Session,
            appointment_id: UUID,
            status: str,
            clock: Callable[[], datetime] = datetime.now
    ) -> Appointment:
        """Move an appointment to another status of the vocabulary"""
        if status not in APPOINTMENT_STATUSES:
            raise ValueError(f"Unknown appointment status: {status}")
        return AppointmentService.update_appointment(db, appointment_id, AppointmentUpdate(status=status), clock)

    @staticmethod
    def update_appointment(
            db: Session,
            appointment_id: UUID,
            data: AppointmentUpdate,
            clock: Callable[[], datetime] = datetime.now
    ) -> Appointment:
        """
        Apply an admin edit: status, reschedule, service details or notes.

        The target slot is re-checked, ignoring this appointment, whenever the
        appointment ends up active at an instant it did not already hold
        actively: a reschedule, or a return from cancelled/completed/no-show.

        Raises:
            NotFoundError: no such appointment
            SlotUnavailableError: the target slot cannot be booked
            AvailabilityEvaluationError: availability could not be confirmed; nothing changes
        """
        changes = data.model_dump(exclude_unset=True)
        for field in _REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise ValueError(f"{field} cannot be cleared")
        if "appointment_at" in changes:
            changes["appointment_at"] = normalize_slot_instant(changes["appointment_at"])

        appointment = AppointmentService.get_appointment(db, appointment_id)
        previous_status = appointment.status
        previous_at = appointment.appointment_at
        status = changes.get("status", previous_status)
        appointment_at = changes.get("appointment_at", previous_at)

        occupies_new_slot = status in ACTIVE_STATUSES and (
            previous_status not in ACTIVE_STATUSES or appointment_at != previous_at
        )

        try:
            if occupies_new_slot:
                AppointmentService._claim_slot(db, appointment_at, clock, ignore_appointment_id=appointment.id)

            for field, value in changes.items():
                setattr(appointment, field, value)
            if status == "cancelled" and previous_status != "cancelled":
                appointment.cancelled_at = datetime.now()
            elif status in ACTIVE_STATUSES:
                appointment.cancelled_at = None

            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.info(f"Slot {appointment_at.isoformat()} taken while updating appointment {appointment_id}: {e.orig}")
            raise SlotUnavailableError(SLOT_TAKEN_REASON) from e
        except Exception:
            db.rollback()
            raise

        db.refresh(appointment)
        if appointment_at != previous_at:
            logger.info(f"Appointment {appointment.id} rescheduled {previous_at.isoformat()} -> {appointment_at.isoformat()}")
        if status != previous_status:
            logger.info(f"Appointment {appointment.id} status {previous_status} -> {status}")
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment_id: UUID) -> None:
        appointment = AppointmentService.get_appointment(db, appointment_id)
        db.delete(appointment)
        db.commit()
        logger.info(f"Deleted appointment {appointment_id}")

    @staticmethod
    def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    @staticmethod
    def list_appointments(
            db: Session,
            status: Optional[str] = None,
            date_from: Optional[date] = None,
            date_to: Optional[date] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Appointment]:
        """Appointments ordered by time, optionally filtered by status and inclusive date range"""
        query = db.query(Appointment)

        if status:
            query = query.filter(Appointment.status == status)
        if date_from:
            query = query.filter(Appointment.appointment_at >= datetime.combine(date_from, datetime.min.time()))
        if date_to:
            query = query.filter(
                Appointment.appointment_at < datetime.combine(date_to + timedelta(days=1), datetime.min.time())
            )

        return query.order_by(Appointment.appointment_at.asc()).offset(skip).limit(limit).all()

    @staticmethod
    def list_upcoming(
            db: Session,
            days: int = 7,
            limit: int = 20,
            clock: Callable[[], datetime] = datetime.now
    ) -> List[Appointment]:
        """Active appointments from now until `days` days ahead, soonest first"""
        now = clock()
        return db.query(Appointment).filter(
            Appointment.appointment_at >= now,
            Appointment.appointment_at <= now + timedelta(days=days),
            Appointment.status.in_(ACTIVE_STATUSES)
        ).order_by(Appointment.appointment_at.asc()).limit(limit).all()

    @staticmethod
    def get_stats(db: Session, clock: Callable[[], datetime] = datetime.now) -> Dict:
        """
        Dashboard counters.

        today counts every appointment on today's date regardless of status;
        upcoming_week counts active ones from midnight today through the same
        time seven days later.
        """
        today = datetime.combine(clock().date(), datetime.min.time())

        total = db.query(Appointment).count()
        today_count = db.query(Appointment).filter(
            Appointment.appointment_at >= today,
            Appointment.appointment_at < today + timedelta(days=1)
        ).count()
        upcoming_week = db.query(Appointment).filter(
            Appointment.appointment_at >= today,
            Appointment.appointment_at <= today + timedelta(days=7),
            Appointment.status.in_(ACTIVE_STATUSES)
        ).count()
        by_status = dict(
            db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all()
        )

        return {
            "total": total,
            "today": today_count,
            "upcoming_week": upcoming_week,
            "by_status": by_status,
        }

    @staticmethod
    def _claim_slot(
            db: Session,
            appointment_at: datetime,
            clock: Callable[[], datetime],
            ignore_appointment_id: Optional[UUID] = None
    ) -> None:
        """Lock the calendar and re-check the slot inside the caller's transaction"""
        AppointmentService._lock_calendar(db)
        verdict = AvailabilityService.from_session(
            db,
            ignore_appointment_id=ignore_appointment_id,
            clock=clock,
        ).check_availability(appointment_at)
        if not verdict.available:
            raise SlotUnavailableError(verdict.reason)

    @staticmethod
    def _lock_calendar(db: Session) -> None:
        if db.get_bind().dialect.name == "postgresql":
            db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": BOOKING_LOCK_KEY})
