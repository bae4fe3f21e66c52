"""
Helpers for reading stored scheduling rules.

Every time of day is reduced to minutes since midnight so comparisons follow
the same total order as zero-padded "HH:MM" strings without depending on
string formatting. Anything that does not parse raises MalformedRuleError.
"""
import math
import re
from datetime import date, datetime, time
from typing import Optional, Set, Tuple

from bookingdesk.core.exceptions import MalformedRuleError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def day_of_week(value: date) -> int:
    """Weekday number as stored in the rules: 0=Sunday ... 6=Saturday"""
    return (value.weekday() + 1) % 7


def minute_of_day(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time_of_day(value, rule=None) -> int:
    """Convert "HH:MM" (or a datetime.time) to minutes since midnight"""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, str):
        match = _HHMM.match(value)
        if match:
            return int(match.group(1)) * 60 + int(match.group(2))
    raise MalformedRuleError(rule, f"Invalid time of day {value!r}")


def time_window(rule) -> Tuple[int, int]:
    """Half-open [start, end) window of a rule, in minutes since midnight"""
    start = parse_time_of_day(rule.start_time, rule)
    end = parse_time_of_day(rule.end_time, rule)
    if start >= end:
        raise MalformedRuleError(rule, f"start_time {rule.start_time} is not before end_time {rule.end_time}")
    return start, end


def _int_set(rule, values, low: int, high: int, label: str) -> Set[int]:
    if not isinstance(values, (list, tuple, set)):
        raise MalformedRuleError(rule, f"{label} must be a list, got {values!r}")
    result = set()
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
            raise MalformedRuleError(rule, f"{label} value {value!r} outside {low}-{high}")
        result.add(value)
    return result


def weekday_set(rule, required: bool = True) -> Set[int]:
    days = rule.days_of_week
    if days is None and not required:
        return set()
    days = _int_set(rule, days, 0, 6, "days_of_week")
    if required and not days:
        raise MalformedRuleError(rule, "days_of_week is empty")
    return days


def month_day_set(rule) -> Set[int]:
    if rule.days_of_month is None:
        return set()
    return _int_set(rule, rule.days_of_month, 1, 31, "days_of_month")


def validate_weekday(rule) -> int:
    value = rule.day_of_week
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
        raise MalformedRuleError(rule, f"day_of_week {value!r} outside 0-6")
    return value


# Recurring patterns

def pattern_applies(pattern, on_date: date) -> bool:
    """Whether a pattern's day predicate matches the date"""
    if pattern.pattern_type == "weekly":
        return day_of_week(on_date) in weekday_set(pattern, required=False)
    if pattern.pattern_type == "monthly":
        return on_date.day in month_day_set(pattern)
    if pattern.pattern_type == "custom":
        return False
    raise MalformedRuleError(pattern, f"Unknown pattern_type {pattern.pattern_type!r}")


def pattern_time_override(pattern) -> Optional[Tuple[int, int]]:
    """The pattern's [start, end) override, or None when it defines none"""
    if pattern.start_time is None and pattern.end_time is None:
        return None
    if pattern.start_time is None or pattern.end_time is None:
        raise MalformedRuleError(pattern, "Time override needs both start_time and end_time")
    return time_window(pattern)


def pattern_precedence(pattern):
    """
    Sort key for overlapping patterns; the smallest key governs.

    The narrowest validity window wins (open-ended windows are the widest);
    among equal windows the most recently created pattern wins.
    """
    if pattern.valid_from is not None and pattern.valid_to is not None:
        span = (pattern.valid_to - pattern.valid_from).days
    else:
        span = math.inf
    return span, -(pattern.id or 0)
