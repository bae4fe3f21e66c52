import uuid

from sqlalchemy import Column, String, Integer, Text, DateTime, Index, CheckConstraint, Uuid, text
from sqlalchemy.sql import func

from bookingdesk.models.base import Base

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled", "no-show")

# Statuses that occupy a slot
ACTIVE_STATUSES = ("scheduled", "confirmed")

SERVICE_TYPES = ("consultation", "flight-booking", "hotel-booking", "visa-assistance", "group-booking", "other")
LOCATIONS = ("office", "online", "phone")
BOOKING_SOURCES = ("website", "phone", "walk-in", "email", "referral")

_ACTIVE_SLOT_PREDICATE = text("status IN ('scheduled', 'confirmed')")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Customer info
    full_name = Column(String(200), nullable=False)
    email = Column(String(254), nullable=False)
    phone = Column(String(30), nullable=False)

    # Appointment details (naive local wall-clock, whole minutes)
    appointment_at = Column(DateTime, nullable=False)
    service_type = Column(String(30), default="consultation")
    location = Column(String(10), default="office")
    source = Column(String(10), default="website")
    notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(10), nullable=False, default="scheduled")  # scheduled, confirmed, completed, cancelled, no-show
    reminders_sent = Column(Integer, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no-show')",
            name="ck_appointments_status",
        ),
        Index("ix_appointments_appointment_at", "appointment_at"),
        # One active booking per slot instant; closes the check-then-insert race
        Index(
            "uq_appointments_active_slot",
            "appointment_at",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self):
        return f"<Appointment(id={self.id}, at={self.appointment_at}, status={self.status})>"
