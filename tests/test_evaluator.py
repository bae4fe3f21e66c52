"""
Tests for the availability evaluator and check_availability.
"""
from datetime import date, datetime, timedelta

import pytest

from bookingdesk.core.exceptions import AvailabilityEvaluationError, MalformedRuleError
from bookingdesk.services.availability.availability_service import AvailabilityService
from bookingdesk.services.availability.evaluator import AvailabilityEvaluator

from fakes import (
    NOW,
    FailingBookingRepository,
    InMemoryRuleRepository,
    appointment,
    blackout,
    break_time,
    fixed_clock,
    pattern,
    weekday_hours,
    working_hours,
)

MONDAY = date(2025, 12, 1)


def at(day, hour, minute=0):
    return datetime(day.year, day.month, day.day, hour, minute)


@pytest.fixture
def rules():
    return InMemoryRuleRepository(working_hours=weekday_hours())


class TestPastAndHours:

    def test_past_instants_are_unavailable(self, service):
        for instant in (NOW - timedelta(minutes=1), NOW - timedelta(days=3), datetime(2020, 6, 1, 10, 0)):
            verdict = service.check_availability(instant)
            assert verdict.available is False
            assert "in the past" in verdict.reason
            assert verdict.stage == "past"

    def test_past_check_wins_over_closed_day(self, service):
        verdict = service.check_availability(datetime(2025, 11, 30, 10, 0))  # Sunday, in the past
        assert verdict.stage == "past"

    def test_disabled_weekday_is_closed(self, service):
        for hour in (0, 9, 12, 16, 23):
            verdict = service.check_availability(at(date(2025, 12, 7), hour))  # Sunday
            assert verdict.available is False
            assert "closed this day" in verdict.reason

    def test_missing_weekday_record_is_closed(self, service, rules):
        rules.working_hours = [h for h in rules.working_hours if h.day_of_week != 1]
        verdict = service.check_availability(at(MONDAY, 10))
        assert verdict.stage == "closed_day"

    def test_working_hours_are_half_open(self, service):
        assert service.check_availability(at(MONDAY, 9)).available is True
        assert service.check_availability(at(MONDAY, 16, 59)).available is True

        verdict = service.check_availability(at(MONDAY, 17))
        assert verdict.available is False
        assert verdict.reason == "Outside working hours (09:00 - 17:00)"

    def test_before_opening(self, service):
        verdict = service.check_availability(at(MONDAY, 8, 30))
        assert verdict.stage == "working_hours"


class TestBlackoutsAndBreaks:

    def test_blackout_blocks_open_day(self, service, rules):
        rules.blackouts.append(blackout("Christmas", date(2025, 12, 25), date(2025, 12, 26)))

        verdict = service.check_availability(datetime(2025, 12, 25, 10, 0))
        assert verdict.available is False
        assert verdict.reason == "Office closed: Christmas"
        assert service.check_availability(datetime(2025, 12, 26, 16, 30)).available is False
        assert service.check_availability(datetime(2025, 12, 24, 10, 0)).available is True

    def test_blackout_reason_wins_over_break(self, service, rules):
        rules.blackouts.append(blackout("Inventory", MONDAY, MONDAY))
        rules.breaks.append(break_time("Lunch", "12:00", "13:00"))

        assert service.check_availability(at(MONDAY, 12, 30)).stage == "blackout"

    def test_inactive_blackout_is_ignored(self, service, rules):
        rules.blackouts.append(blackout("Old", MONDAY, MONDAY, is_active=False))
        assert service.check_availability(at(MONDAY, 10)).available is True

    def test_break_blocks_inside_working_hours(self, service, rules):
        rules.breaks.append(break_time("Lunch", "12:00", "13:00", days=[1, 2, 3, 4, 5]))

        verdict = service.check_availability(at(MONDAY, 12, 30))
        assert verdict.available is False
        assert "Lunch" in verdict.reason
        assert service.check_availability(at(MONDAY, 11, 30)).available is True
        assert service.check_availability(at(MONDAY, 13)).available is True

    def test_break_only_on_listed_days(self, service, rules):
        rules.breaks.append(break_time("Team meeting", "10:00", "11:00", days=[3]))

        assert service.check_availability(at(MONDAY, 10, 15)).available is True
        assert service.check_availability(datetime(2025, 12, 3, 10, 15)).available is False


class TestRecurringPatterns:

    def test_weekly_pattern_narrows_hours(self, service, rules):
        rules.patterns.append(pattern("Short Mondays", days_of_week=[1], start="10:00", end="14:00"))

        verdict = service.check_availability(at(MONDAY, 9, 30))
        assert verdict.available is False
        assert verdict.reason == "Outside special hours for Short Mondays"
        assert service.check_availability(at(MONDAY, 10, 30)).available is True
        assert service.check_availability(datetime(2025, 12, 2, 9, 30)).available is True

    def test_monthly_pattern(self, service, rules):
        rules.patterns.append(pattern("Month start", pattern_type="monthly", days_of_month=[1], start="13:00", end="17:00"))

        assert service.check_availability(at(MONDAY, 10)).stage == "recurring_pattern"
        assert service.check_availability(datetime(2025, 12, 8, 10, 0)).available is True

    def test_pattern_outside_validity_window_is_ignored(self, service, rules):
        rules.patterns.append(pattern(
            "January hours", days_of_week=[1], start="12:00", end="14:00",
            valid_from=date(2026, 1, 1), valid_to=date(2026, 1, 31)
        ))
        assert service.check_availability(at(MONDAY, 10)).available is True

    def test_pattern_never_widens_working_hours(self, service, rules):
        rules.patterns.append(pattern("Long Mondays", days_of_week=[1], start="07:00", end="20:00"))

        assert service.check_availability(at(MONDAY, 18)).stage == "working_hours"

    def test_pattern_without_override_does_not_narrow(self, service, rules):
        rules.patterns.append(pattern("Marker", days_of_week=[1]))
        assert service.check_availability(at(MONDAY, 9)).available is True

    def test_narrowest_matching_pattern_governs(self, service, rules):
        rules.patterns.append(pattern("Default Mondays", id=1, days_of_week=[1], start="10:00", end="12:00"))
        rules.patterns.append(pattern(
            "Holiday week", id=2, days_of_week=[1], start="13:00", end="16:00",
            valid_from=date(2025, 12, 1), valid_to=date(2025, 12, 7)
        ))

        verdict = service.check_availability(at(MONDAY, 11))
        assert verdict.reason == "Outside special hours for Holiday week"
        assert service.check_availability(at(MONDAY, 14)).available is True


class TestBookingConflict:

    def test_booking_scenario(self, service, bookings):
        assert service.check_availability(at(MONDAY, 10)).available is True

        bookings.appointments.append(appointment(at(MONDAY, 10)))

        verdict = service.check_availability(at(MONDAY, 10))
        assert verdict.available is False
        assert "slot already booked" in verdict.reason
        assert service.check_availability(at(MONDAY, 10, 45)).available is True

    def test_conflict_window_looks_forward_thirty_minutes(self, service, bookings):
        bookings.appointments.append(appointment(at(MONDAY, 10)))

        assert service.check_availability(at(MONDAY, 9, 45)).available is False
        assert service.check_availability(at(MONDAY, 9, 30)).available is True
        assert service.check_availability(at(MONDAY, 10, 15)).available is True

    @pytest.mark.parametrize("status", ["completed", "cancelled", "no-show"])
    def test_inactive_appointments_do_not_block(self, service, bookings, status):
        bookings.appointments.append(appointment(at(MONDAY, 10), status=status))
        assert service.check_availability(at(MONDAY, 10)).available is True

    def test_confirmed_appointment_blocks(self, service, bookings):
        bookings.appointments.append(appointment(at(MONDAY, 10), status="confirmed"))
        assert service.check_availability(at(MONDAY, 10)).stage == "booking_conflict"

    def test_conflict_window_is_configurable(self, rules, bookings):
        bookings.appointments.append(appointment(at(MONDAY, 10)))
        service = AvailabilityService(rules, bookings, conflict_window_minutes=60, clock=fixed_clock)

        assert service.check_availability(at(MONDAY, 9, 15)).available is False

    def test_conflict_window_must_be_positive(self, rules, bookings):
        with pytest.raises(ValueError):
            AvailabilityEvaluator(rules, bookings, conflict_window_minutes=0)


class TestEvaluationFailures:

    def test_booking_read_failure_is_not_a_verdict(self, rules):
        service = AvailabilityService(rules, FailingBookingRepository(), clock=fixed_clock)
        with pytest.raises(AvailabilityEvaluationError):
            service.check_availability(at(MONDAY, 10))

    def test_unexpected_repository_error_is_wrapped(self, bookings):
        class BrokenRules(InMemoryRuleRepository):
            def find_blackout(self, on_date):
                raise ConnectionError("rules store down")

        service = AvailabilityService(BrokenRules(working_hours=weekday_hours()), bookings, clock=fixed_clock)
        with pytest.raises(AvailabilityEvaluationError) as exc_info:
            service.check_availability(at(MONDAY, 10))
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_rejections_before_a_failing_read_still_return_verdicts(self, rules):
        service = AvailabilityService(rules, FailingBookingRepository(), clock=fixed_clock)
        assert service.check_availability(at(MONDAY, 18)).available is False

    def test_malformed_working_hours(self, service, rules):
        rules.working_hours = [working_hours(1, "9am", "17:00")]
        with pytest.raises(MalformedRuleError):
            service.check_availability(at(MONDAY, 10))

    def test_malformed_break(self, service, rules):
        rules.breaks.append(break_time("Lunch", "13:00", "12:00"))
        with pytest.raises(MalformedRuleError):
            service.check_availability(at(MONDAY, 10))


def test_repeated_checks_are_identical(service, rules, bookings):
    rules.breaks.append(break_time("Lunch", "12:00", "13:00"))
    bookings.appointments.append(appointment(at(MONDAY, 15)))

    for instant in (at(MONDAY, 10), at(MONDAY, 12, 15), at(MONDAY, 15), at(date(2025, 12, 7), 10)):
        assert service.check_availability(instant) == service.check_availability(instant)
