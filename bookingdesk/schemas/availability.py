"""
Pydantic schemas for the availability engine and rule administration
"""
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


# ============================================================================
# Engine results
# ============================================================================

class AvailabilityVerdict(BaseModel):
    """Outcome of evaluating one instant"""
    available: bool
    reason: Optional[str] = None
    stage: Optional[str] = Field(None, description="Check that rejected the instant")


class TimeSlot(BaseModel):
    """One candidate instant of a day listing"""
    time: str  # HH:MM
    instant: datetime
    available: Optional[bool] = None  # None when evaluation failed
    reason: Optional[str] = None
    error: Optional[str] = None


class DateAvailability(BaseModel):
    """Coarse availability of a calendar day"""
    date: date
    day_of_week: int
    has_availability: Optional[bool] = None  # None when evaluation failed
    error: Optional[str] = None


class AvailabilityCheckRequest(BaseModel):
    datetime: datetime


# ============================================================================
# Rule administration
# ============================================================================

class _TimeRange(BaseModel):
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WorkingHoursUpsert(_TimeRange):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    enabled: bool = True


class WorkingHoursOut(WorkingHoursUpsert):
    id: int
    day_name: str

    model_config = {"from_attributes": True}


class BreakTimeCreate(_TimeRange):
    name: str = Field(..., min_length=1, max_length=100)
    days_of_week: List[int] = Field(..., min_length=1)
    is_active: bool = True

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v):
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Days of week must be numbers between 0 and 6")
        return sorted(set(v))

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip()


class BreakTimeOut(BreakTimeCreate):
    id: int

    model_config = {"from_attributes": True}


class BlackoutDateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    reason: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self


class BlackoutDateOut(BlackoutDateCreate):
    id: int

    model_config = {"from_attributes": True}


class RecurringPatternCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    pattern_type: Literal["weekly", "monthly", "custom"] = "weekly"
    days_of_week: Optional[List[int]] = None
    days_of_month: Optional[List[int]] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    is_active: bool = True

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v):
        if v and any(day < 0 or day > 6 for day in v):
            raise ValueError("Days of week must be numbers between 0 and 6")
        return v

    @field_validator("days_of_month")
    @classmethod
    def validate_days_of_month(cls, v):
        if v and any(day < 1 or day > 31 for day in v):
            raise ValueError("Days of month must be numbers between 1 and 31")
        return v

    @model_validator(mode="after")
    def check_consistency(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to must be on or after valid_from")
        return self


class RecurringPatternOut(RecurringPatternCreate):
    id: int

    model_config = {"from_attributes": True}


# ============================================================================
# Partial updates; unset fields keep their stored value, and the merged record
# is re-validated against the matching *Create schema
# ============================================================================

class WorkingHoursUpdate(BaseModel):
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    enabled: Optional[bool] = None


class BreakTimeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    days_of_week: Optional[List[int]] = None
    is_active: Optional[bool] = None


class BlackoutDateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    is_active: Optional[bool] = None


class RecurringPatternUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    pattern_type: Optional[Literal["weekly", "monthly", "custom"]] = None
    days_of_week: Optional[List[int]] = None
    days_of_month: Optional[List[int]] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    is_active: Optional[bool] = None
