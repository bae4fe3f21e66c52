"""
Availability Service

Public entry points of the availability engine:

- check_availability(instant): full evaluation of a single instant
- get_available_slots(date, slot_duration_minutes): per-day slot listing
- get_available_dates(num_days): coarse calendar overview

Listings keep going when a single entry cannot be evaluated; that entry is
returned with available/has_availability set to None and an error message.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from bookingdesk.config.settings import get_settings
from bookingdesk.core.exceptions import AvailabilityEvaluationError
from bookingdesk.schemas.availability import AvailabilityVerdict, DateAvailability, TimeSlot
from bookingdesk.services.availability.evaluator import AvailabilityEvaluator, evaluation_errors
from bookingdesk.services.availability.repositories import (
    BookingRepository,
    RuleRepository,
    SqlAlchemyBookingRepository,
    SqlAlchemyRuleRepository,
)
from bookingdesk.services.availability.rules import day_of_week, format_minutes, time_window, validate_weekday

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Availability checks and listings over one shared calendar"""

    def __init__(
            self,
            rules: RuleRepository,
            bookings: BookingRepository,
            conflict_window_minutes: Optional[int] = None,
            clock: Callable[[], datetime] = datetime.now
    ):
        self.settings = get_settings()
        self.rules = rules
        self.clock = clock
        if conflict_window_minutes is None:
            conflict_window_minutes = self.settings.CONFLICT_WINDOW_MINUTES
        self.evaluator = AvailabilityEvaluator(
            rules,
            bookings,
            conflict_window_minutes=conflict_window_minutes,
            clock=clock,
        )

    @classmethod
    def from_session(
            cls,
            db: Session,
            ignore_appointment_id: Optional[UUID] = None,
            **kwargs
    ) -> "AvailabilityService":
        """Build a service reading rules and bookings through a database session"""
        bookings = SqlAlchemyBookingRepository(db, ignore_appointment_id=ignore_appointment_id)
        return cls(SqlAlchemyRuleRepository(db), bookings, **kwargs)

    def check_availability(self, instant: datetime) -> AvailabilityVerdict:
        """Can an appointment be booked at this instant?"""
        return self.evaluator.evaluate(instant)

    def get_available_slots(
            self,
            target_date: Union[date, datetime],
            slot_duration_minutes: Optional[int] = None
    ) -> List[TimeSlot]:
        """
        Enumerate slots across the working hours of one day.

        Args:
            target_date: day to list (a datetime is truncated to its date)
            slot_duration_minutes: cadence of the listing; does not change the
                booking conflict window used for each slot

        Returns:
            Slots ordered by time of day; empty when the office is closed
        """
        duration = slot_duration_minutes
        if duration is None:
            duration = self.settings.DEFAULT_SLOT_DURATION_MINUTES
        if duration <= 0:
            raise ValueError("slot_duration_minutes must be positive")
        if isinstance(target_date, datetime):
            target_date = target_date.date()

        with evaluation_errors(f"slot listing for {target_date.isoformat()}"):
            working_hours = self.rules.get_working_hours(day_of_week(target_date))
            if working_hours is None:
                return []
            validate_weekday(working_hours)
            start, end = time_window(working_hours)

        slots = []
        for minutes in range(start, end, duration):
            instant = datetime.combine(target_date, time(minutes // 60, minutes % 60))
            slot = TimeSlot(time=format_minutes(minutes), instant=instant)
            try:
                verdict = self.evaluator.evaluate(instant)
            except AvailabilityEvaluationError as e:
                logger.warning(f"Could not evaluate slot {instant.isoformat()}: {e}")
                slot.error = str(e)
            else:
                slot.available = verdict.available
                slot.reason = verdict.reason
            slots.append(slot)

        return slots

    def summarize_dates(self, start_date: date, num_days: int) -> List[DateAvailability]:
        """
        Day-level availability for num_days consecutive days.

        Only working hours and blackouts are consulted; breaks, recurring
        patterns and bookings are skipped to keep the overview cheap.
        """
        if num_days < 0:
            raise ValueError("num_days must not be negative")

        dates = []
        for offset in range(num_days):
            day = start_date + timedelta(days=offset)
            entry = DateAvailability(date=day, day_of_week=day_of_week(day))
            try:
                entry.has_availability = self._day_is_open(day)
            except AvailabilityEvaluationError as e:
                logger.warning(f"Could not summarize {day.isoformat()}: {e}")
                entry.error = str(e)
            dates.append(entry)

        return dates

    def get_available_dates(
            self,
            num_days: Optional[int] = None,
            start_date: Optional[date] = None
    ) -> List[DateAvailability]:
        """Calendar overview starting today (or start_date)"""
        if num_days is None:
            num_days = self.settings.DEFAULT_DATE_RANGE_DAYS
        if start_date is None:
            start_date = self.clock().date()
        return self.summarize_dates(start_date, num_days)

    def _day_is_open(self, day: date) -> bool:
        with evaluation_errors(f"date summary for {day.isoformat()}"):
            working_hours = self.rules.get_working_hours(day_of_week(day))
            if working_hours is None:
                return False
            return self.rules.find_blackout(day) is None
