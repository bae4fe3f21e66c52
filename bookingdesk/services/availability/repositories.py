"""
Read interfaces the availability engine depends on, and their SQLAlchemy
implementations.

The evaluator only sees the Protocols below, so tests can hand it in-memory
fakes instead of a database session.
"""
import functools
import logging
from datetime import date, datetime
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookingdesk.core.exceptions import AvailabilityEvaluationError
from bookingdesk.models.appointment import Appointment, ACTIVE_STATUSES
from bookingdesk.models.availability import WorkingHours, BreakTime, BlackoutDate, RecurringPattern
from bookingdesk.services.availability.rules import weekday_set

logger = logging.getLogger(__name__)


class RuleRepository(Protocol):
    def get_working_hours(self, day_of_week: int) -> Optional[WorkingHours]:
        """Enabled working hours for a weekday, if any"""

    def get_breaks(self, day_of_week: int) -> List[BreakTime]:
        """Active breaks that recur on a weekday"""

    def find_blackout(self, on_date: date) -> Optional[BlackoutDate]:
        """An active blackout covering the date, if any"""

    def get_patterns(self, on_date: date) -> List[RecurringPattern]:
        """Active recurring patterns whose validity window contains the date"""


class BookingRepository(Protocol):
    def find_active_in_window(self, start: datetime, end: datetime) -> Optional[Appointment]:
        """An active appointment with start <= appointment_at < end, if any"""


def _read(func):
    """Surface storage failures as AvailabilityEvaluationError"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Availability read {func.__name__} failed: {e}", exc_info=True)
            raise AvailabilityEvaluationError(f"Could not read {func.__name__}: {e}") from e

    return wrapper


class SqlAlchemyRuleRepository:
    """Rule reads against the database; every call hits the current committed state"""

    def __init__(self, db: Session):
        self.db = db

    @_read
    def get_working_hours(self, day_of_week: int) -> Optional[WorkingHours]:
        return self.db.query(WorkingHours).filter_by(
            day_of_week=day_of_week,
            enabled=True
        ).first()

    @_read
    def get_breaks(self, day_of_week: int) -> List[BreakTime]:
        # days_of_week is a JSON list; filter it here rather than in dialect-specific SQL
        breaks = self.db.query(BreakTime).filter(
            BreakTime.is_active == True
        ).order_by(BreakTime.start_time, BreakTime.id).all()
        return [b for b in breaks if day_of_week in weekday_set(b)]

    @_read
    def find_blackout(self, on_date: date) -> Optional[BlackoutDate]:
        return self.db.query(BlackoutDate).filter(
            BlackoutDate.is_active == True,
            BlackoutDate.start_date <= on_date,
            BlackoutDate.end_date >= on_date
        ).order_by(BlackoutDate.start_date, BlackoutDate.id).first()

    @_read
    def get_patterns(self, on_date: date) -> List[RecurringPattern]:
        return self.db.query(RecurringPattern).filter(
            RecurringPattern.is_active == True,
            or_(RecurringPattern.valid_from.is_(None), RecurringPattern.valid_from <= on_date),
            or_(RecurringPattern.valid_to.is_(None), RecurringPattern.valid_to >= on_date)
        ).order_by(RecurringPattern.id).all()


class SqlAlchemyBookingRepository:
    """
    Booking-conflict reads against the appointments table.

    ignore_appointment_id leaves one appointment out of every read, so an
    appointment being rescheduled or re-activated does not conflict with itself.
    """

    def __init__(self, db: Session, ignore_appointment_id: Optional[UUID] = None):
        self.db = db
        self.ignore_appointment_id = ignore_appointment_id

    @_read
    def find_active_in_window(self, start: datetime, end: datetime) -> Optional[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.appointment_at >= start,
            Appointment.appointment_at < end,
            Appointment.status.in_(ACTIVE_STATUSES)
        )
        if self.ignore_appointment_id is not None:
            query = query.filter(Appointment.id != self.ignore_appointment_id)
        return query.order_by(Appointment.appointment_at).first()
