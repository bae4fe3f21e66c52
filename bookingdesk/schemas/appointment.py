"""
Pydantic schemas for appointment booking
"""
from datetime import datetime
from typing import Dict, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

AppointmentStatus = Literal["scheduled", "confirmed", "completed", "cancelled", "no-show"]
ServiceType = Literal["consultation", "flight-booking", "hotel-booking", "visa-assistance", "group-booking", "other"]
Location = Literal["office", "online", "phone"]
BookingSource = Literal["website", "phone", "walk-in", "email", "referral"]


class AppointmentCreate(BaseModel):
    """Booking request submitted by a visitor"""
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    appointment_at: datetime
    service_type: ServiceType = "consultation"
    location: Location = "office"
    source: BookingSource = "website"
    notes: Optional[str] = None

    @field_validator("full_name", "phone")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentOut(BaseModel):
    id: UUID
    full_name: str
    email: str
    phone: str
    appointment_at: datetime
    service_type: Optional[str] = None
    location: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AppointmentUpdate(BaseModel):
    """Admin edit of an appointment; a new appointment_at is a reschedule"""
    status: Optional[AppointmentStatus] = None
    appointment_at: Optional[datetime] = None
    service_type: Optional[ServiceType] = None
    location: Optional[Location] = None
    notes: Optional[str] = None


class AppointmentStats(BaseModel):
    total: int
    today: int
    upcoming_week: int
    by_status: Dict[str, int]
