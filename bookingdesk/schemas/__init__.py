# bookingdesk/schemas/__init__.py
from .availability import (
    AvailabilityVerdict,
    TimeSlot,
    DateAvailability,
    AvailabilityCheckRequest,
    WorkingHoursUpsert,
    WorkingHoursOut,
    BreakTimeCreate,
    BreakTimeOut,
    BlackoutDateCreate,
    BlackoutDateOut,
    RecurringPatternCreate,
    RecurringPatternOut,
    WorkingHoursUpdate,
    BreakTimeUpdate,
    BlackoutDateUpdate,
    RecurringPatternUpdate,
)

from .appointment import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    AppointmentOut,
    AppointmentUpdate,
    AppointmentStats,
)
