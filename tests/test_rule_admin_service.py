from datetime import date

import pytest
from pydantic import ValidationError

from bookingdesk.core.exceptions import NotFoundError
from bookingdesk.models import BlackoutDate, BreakTime, RecurringPattern, WorkingHours
from bookingdesk.schemas.availability import (
    BlackoutDateCreate,
    BlackoutDateUpdate,
    BreakTimeCreate,
    BreakTimeUpdate,
    RecurringPatternCreate,
    RecurringPatternUpdate,
    WorkingHoursUpdate,
    WorkingHoursUpsert,
)
from bookingdesk.seed_availability import DEFAULT_WORKING_HOURS, seed_working_hours
from bookingdesk.services.availability.rule_admin_service import RuleAdminService


def test_upsert_keeps_one_row_per_weekday(db):
    RuleAdminService.upsert_working_hours(db, WorkingHoursUpsert(day_of_week=3, start_time="09:00", end_time="17:00"))
    hours = RuleAdminService.upsert_working_hours(
        db, WorkingHoursUpsert(day_of_week=3, start_time="08:30", end_time="12:00", enabled=False)
    )

    assert hours.day_name == "Wednesday"
    assert (hours.start_time, hours.end_time, hours.enabled) == ("08:30", "12:00", False)
    assert db.query(WorkingHours).count() == 1


def test_list_working_hours_ordered_by_weekday(db):
    for day in (5, 0, 2):
        RuleAdminService.upsert_working_hours(db, WorkingHoursUpsert(day_of_week=day, start_time="09:00", end_time="17:00"))

    assert [h.day_of_week for h in RuleAdminService.list_working_hours(db)] == [0, 2, 5]


def test_delete_missing_working_hours(db):
    with pytest.raises(NotFoundError):
        RuleAdminService.delete_working_hours(db, 4)


def test_create_and_delete_rules(db):
    lunch = RuleAdminService.create_break(
        db, BreakTimeCreate(name="Lunch", start_time="12:00", end_time="13:00", days_of_week=[1, 2])
    )
    closure = RuleAdminService.create_blackout_date(
        db, BlackoutDateCreate(name="Holiday", start_date=date(2025, 12, 25), end_date=date(2025, 12, 26))
    )
    pattern = RuleAdminService.create_recurring_pattern(
        db, RecurringPatternCreate(name="Month end", pattern_type="monthly", days_of_month=[28, 29, 30, 31])
    )

    assert lunch.id and closure.id and pattern.id
    assert [b.name for b in RuleAdminService.list_breaks(db)] == ["Lunch"]

    for model, rule in ((BreakTime, lunch), (BlackoutDate, closure), (RecurringPattern, pattern)):
        RuleAdminService.delete_rule(db, model, rule.id)
        assert db.query(model).count() == 0
        with pytest.raises(NotFoundError):
            RuleAdminService.delete_rule(db, model, rule.id)


def test_active_only_listings(db):
    RuleAdminService.create_blackout_date(
        db, BlackoutDateCreate(name="Old", start_date=date(2025, 1, 1), end_date=date(2025, 1, 1), is_active=False)
    )
    RuleAdminService.create_blackout_date(
        db, BlackoutDateCreate(name="New", start_date=date(2025, 12, 24), end_date=date(2025, 12, 24))
    )
    RuleAdminService.create_recurring_pattern(db, RecurringPatternCreate(name="Paused", days_of_week=[1], is_active=False))

    assert [b.name for b in RuleAdminService.list_blackout_dates(db)] == ["Old", "New"]
    assert [b.name for b in RuleAdminService.list_blackout_dates(db, active_only=True)] == ["New"]
    assert RuleAdminService.list_recurring_patterns(db, active_only=True) == []


class TestSeed:
    def test_seeds_default_week(self, db):
        written = seed_working_hours(db)

        hours = {h.day_of_week: h for h in db.query(WorkingHours).all()}
        assert written == len(DEFAULT_WORKING_HOURS) == 7
        assert hours[0].enabled is False
        assert (hours[6].start_time, hours[6].end_time) == ("10:00", "14:00")
        assert all(hours[day].enabled and hours[day].start_time == "09:00" for day in range(1, 6))

    def test_skips_existing_unless_forced(self, db):
        RuleAdminService.upsert_working_hours(db, WorkingHoursUpsert(day_of_week=1, start_time="07:00", end_time="08:00"))

        assert seed_working_hours(db) == 0
        assert db.query(WorkingHours).count() == 1

        assert seed_working_hours(db, force=True) == 7
        assert db.query(WorkingHours).filter_by(day_of_week=1).one().start_time == "09:00"


class TestUpdates:
    def test_working_hours_partial_update(self, db):
        RuleAdminService.upsert_working_hours(db, WorkingHoursUpsert(day_of_week=1, start_time="09:00", end_time="17:00"))

        hours = RuleAdminService.update_working_hours(db, 1, WorkingHoursUpdate(end_time="13:00"))

        assert (hours.start_time, hours.end_time, hours.enabled) == ("09:00", "13:00", True)

    def test_working_hours_update_revalidates_merged_record(self, db):
        RuleAdminService.upsert_working_hours(db, WorkingHoursUpsert(day_of_week=1, start_time="09:00", end_time="17:00"))

        with pytest.raises(ValidationError):
            RuleAdminService.update_working_hours(db, 1, WorkingHoursUpdate(start_time="18:00"))

        assert RuleAdminService.list_working_hours(db)[0].start_time == "09:00"

    def test_working_hours_update_missing_day(self, db):
        with pytest.raises(NotFoundError):
            RuleAdminService.update_working_hours(db, 2, WorkingHoursUpdate(enabled=False))

    def test_deactivate_break_and_blackout(self, db):
        lunch = RuleAdminService.create_break(
            db, BreakTimeCreate(name="Lunch", start_time="12:00", end_time="13:00", days_of_week=[1])
        )
        closure = RuleAdminService.create_blackout_date(
            db, BlackoutDateCreate(name="Holiday", start_date=date(2025, 12, 25), end_date=date(2025, 12, 26))
        )

        lunch = RuleAdminService.update_break(db, lunch.id, BreakTimeUpdate(is_active=False, days_of_week=[2, 1]))
        closure = RuleAdminService.update_blackout_date(db, closure.id, BlackoutDateUpdate(is_active=False))

        assert (lunch.is_active, lunch.days_of_week, lunch.name) == (False, [1, 2], "Lunch")
        assert closure.is_active is False
        assert RuleAdminService.list_blackout_dates(db, active_only=True) == []

    def test_blackout_update_keeps_date_order(self, db):
        closure = RuleAdminService.create_blackout_date(
            db, BlackoutDateCreate(name="Holiday", start_date=date(2025, 12, 25), end_date=date(2025, 12, 26))
        )

        with pytest.raises(ValidationError):
            RuleAdminService.update_blackout_date(db, closure.id, BlackoutDateUpdate(end_date=date(2025, 12, 24)))

    def test_pattern_override_can_be_cleared(self, db):
        pattern = RuleAdminService.create_recurring_pattern(
            db, RecurringPatternCreate(name="Short Mondays", days_of_week=[1], start_time="09:00", end_time="12:00")
        )

        pattern = RuleAdminService.update_recurring_pattern(
            db, pattern.id, RecurringPatternUpdate(start_time=None, end_time=None)
        )

        assert (pattern.start_time, pattern.end_time, pattern.name) == (None, None, "Short Mondays")

    def test_update_missing_rule(self, db):
        with pytest.raises(NotFoundError):
            RuleAdminService.update_break(db, 42, BreakTimeUpdate(is_active=False))


def test_upsert_retries_as_update_when_weekday_created_concurrently(db, monkeypatch):
    RuleAdminService.upsert_working_hours(db, WorkingHoursUpsert(day_of_week=2, start_time="09:00", end_time="17:00"))

    # First lookup misses the row, as if another request committed it just after
    find = RuleAdminService._find_working_hours
    lookups = []

    def stale_then_fresh(db, day_of_week):
        lookups.append(day_of_week)
        return None if len(lookups) == 1 else find(db, day_of_week)

    monkeypatch.setattr(RuleAdminService, "_find_working_hours", staticmethod(stale_then_fresh))

    hours = RuleAdminService.upsert_working_hours(
        db, WorkingHoursUpsert(day_of_week=2, start_time="10:00", end_time="15:00")
    )

    assert lookups == [2, 2]
    assert (hours.start_time, hours.end_time) == ("10:00", "15:00")
    assert db.query(WorkingHours).count() == 1
