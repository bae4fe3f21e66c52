# bookingdesk/models/availability.py
"""
Scheduling rules read by the availability engine.

Times of day are stored as "HH:MM" strings (24-hour clock) and weekdays as
0=Sunday ... 6=Saturday. Shape validation happens in the admin schemas and
again when the engine parses a record.
"""
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, JSON, Text
from sqlalchemy.sql import func

from bookingdesk.models.base import Base

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

PATTERN_TYPES = ("weekly", "monthly", "custom")


class WorkingHours(Base):
    """Weekly base schedule, one row per weekday"""
    __tablename__ = "working_hours"

    id = Column(Integer, primary_key=True)
    day_of_week = Column(Integer, nullable=False, unique=True)  # 0=Sunday, 6=Saturday
    day_name = Column(String(10), nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)  # HH:MM format

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<WorkingHours(day={self.day_of_week}, {self.start_time}-{self.end_time}, enabled={self.enabled})>"


class BreakTime(Base):
    """Recurring break inside working hours (e.g. lunch)"""
    __tablename__ = "break_times"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    days_of_week = Column(JSON, nullable=False)  # e.g. [1, 2, 3, 4, 5] for Mon-Fri
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<BreakTime(name={self.name!r}, {self.start_time}-{self.end_time})>"


class BlackoutDate(Base):
    """Inclusive date range during which nothing can be booked"""
    __tablename__ = "blackout_dates"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    reason = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<BlackoutDate(name={self.name!r}, {self.start_date}..{self.end_date})>"


class RecurringPattern(Base):
    """Narrows opening hours on dates matching a weekly or monthly predicate"""
    __tablename__ = "recurring_patterns"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    pattern_type = Column(String(10), nullable=False, default="weekly")  # weekly, monthly, custom

    days_of_week = Column(JSON, nullable=True)  # weekly patterns
    days_of_month = Column(JSON, nullable=True)  # monthly patterns, 1-31

    # Optional time override
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)

    # Optional validity window (inclusive)
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<RecurringPattern(name={self.name!r}, type={self.pattern_type})>"
