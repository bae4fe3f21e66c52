# bookingdesk/models/__init__.py
from .base import Base
from .availability import WorkingHours, BreakTime, BlackoutDate, RecurringPattern, DAY_NAMES, PATTERN_TYPES
from .appointment import Appointment, APPOINTMENT_STATUSES, ACTIVE_STATUSES

__all__ = [
    "Base",
    "WorkingHours",
    "BreakTime",
    "BlackoutDate",
    "RecurringPattern",
    "Appointment",
    "DAY_NAMES",
    "PATTERN_TYPES",
    "APPOINTMENT_STATUSES",
    "ACTIVE_STATUSES",
]
