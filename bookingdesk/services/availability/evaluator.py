"""
Availability Evaluator

Decides whether a single instant can be booked. The decision is an ordered
chain of stages; the first stage that fires supplies the reason, so the order
of STAGES is part of the contract:

    past -> closed_day -> working_hours -> blackout -> break
         -> recurring_pattern -> booking_conflict

Each stage reads what it needs from the repositories at call time. Nothing is
cached between calls.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from bookingdesk.core.exceptions import AvailabilityEvaluationError, BookingDeskError
from bookingdesk.models.availability import WorkingHours
from bookingdesk.schemas.availability import AvailabilityVerdict
from bookingdesk.services.availability.repositories import RuleRepository, BookingRepository
from bookingdesk.services.availability.rules import (
    day_of_week,
    format_minutes,
    minute_of_day,
    pattern_applies,
    pattern_precedence,
    pattern_time_override,
    time_window,
    validate_weekday,
    weekday_set,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFLICT_WINDOW_MINUTES = 30


@contextmanager
def evaluation_errors(what: str):
    """Re-raise anything unexpected from a rule/booking read as AvailabilityEvaluationError"""
    try:
        yield
    except BookingDeskError:
        raise
    except Exception as e:
        logger.error(f"Availability {what} failed: {e}", exc_info=True)
        raise AvailabilityEvaluationError(f"Availability {what} failed: {e}") from e


@dataclass
class EvaluationContext:
    """Per-call state shared by the stages of one evaluation"""
    instant: datetime
    day: date
    weekday: int
    minute: int
    working_hours: Optional[WorkingHours] = None

    @classmethod
    def for_instant(cls, instant: datetime) -> "EvaluationContext":
        return cls(
            instant=instant,
            day=instant.date(),
            weekday=day_of_week(instant.date()),
            minute=minute_of_day(instant),
        )


class AvailabilityEvaluator:
    """Runs the ordered availability checks for one instant"""

    STAGES = (
        "past",
        "closed_day",
        "working_hours",
        "blackout",
        "break",
        "recurring_pattern",
        "booking_conflict",
    )

    def __init__(
            self,
            rules: RuleRepository,
            bookings: BookingRepository,
            conflict_window_minutes: int = DEFAULT_CONFLICT_WINDOW_MINUTES,
            clock: Callable[[], datetime] = datetime.now
    ):
        if conflict_window_minutes <= 0:
            raise ValueError("conflict_window_minutes must be positive")
        self.rules = rules
        self.bookings = bookings
        self.conflict_window = timedelta(minutes=conflict_window_minutes)
        self.clock = clock

    def evaluate(self, instant: datetime) -> AvailabilityVerdict:
        """
        Evaluate one instant.

        Returns a verdict for both outcomes. Raises AvailabilityEvaluationError
        (or its MalformedRuleError subclass) when the rules or bookings could
        not be read or make no sense.
        """
        ctx = EvaluationContext.for_instant(instant)

        for stage in self.STAGES:
            check = getattr(self, f"_check_{stage}")
            with evaluation_errors(f"{stage} check for {instant.isoformat()}"):
                reason = check(ctx)
            if reason:
                logger.debug(f"{instant.isoformat()} unavailable at stage {stage}: {reason}")
                return AvailabilityVerdict(available=False, reason=reason, stage=stage)

        return AvailabilityVerdict(available=True)

    # ------------------------------------------------------------------
    # Stages: each returns a reason when it rejects the instant, else None
    # ------------------------------------------------------------------

    def _check_past(self, ctx: EvaluationContext) -> Optional[str]:
        if ctx.instant < self.clock():
            return "Cannot book appointments in the past"
        return None

    def _check_closed_day(self, ctx: EvaluationContext) -> Optional[str]:
        ctx.working_hours = self.rules.get_working_hours(ctx.weekday)
        if ctx.working_hours is None:
            return "Office is closed this day"
        validate_weekday(ctx.working_hours)
        return None

    def _check_working_hours(self, ctx: EvaluationContext) -> Optional[str]:
        start, end = time_window(ctx.working_hours)
        if not start <= ctx.minute < end:
            return f"Outside working hours ({format_minutes(start)} - {format_minutes(end)})"
        return None

    def _check_blackout(self, ctx: EvaluationContext) -> Optional[str]:
        blackout = self.rules.find_blackout(ctx.day)
        if blackout is not None:
            return f"Office closed: {blackout.name}"
        return None

    def _check_break(self, ctx: EvaluationContext) -> Optional[str]:
        for break_time in self.rules.get_breaks(ctx.weekday):
            if ctx.weekday not in weekday_set(break_time):
                continue
            start, end = time_window(break_time)
            if start <= ctx.minute < end:
                return f"During break time: {break_time.name}"
        return None

    def _check_recurring_pattern(self, ctx: EvaluationContext) -> Optional[str]:
        # Only patterns with a time override can narrow the day; one of them governs
        overrides = []
        for pattern in self.rules.get_patterns(ctx.day):
            if not pattern_applies(pattern, ctx.day):
                continue
            window = pattern_time_override(pattern)
            if window is not None:
                overrides.append((pattern, window))

        if not overrides:
            return None

        pattern, (start, end) = min(overrides, key=lambda item: pattern_precedence(item[0]))
        if not start <= ctx.minute < end:
            return f"Outside special hours for {pattern.name}"
        return None

    def _check_booking_conflict(self, ctx: EvaluationContext) -> Optional[str]:
        existing = self.bookings.find_active_in_window(ctx.instant, ctx.instant + self.conflict_window)
        if existing is not None:
            return "Time slot already booked"
        return None
