"""
Appointment Models for in-person registrar visits
"""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class AppointmentStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    NO_SHOW = "No-Show"
    CANCELLED = "Cancelled"


# Rows matching this predicate hold their (date, time_slot)
ACTIVE_SLOT_PREDICATE = text("status <> 'Cancelled'")


class Appointment(Base):
    """Appointment model for a single half-hour visit tied to one request"""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # One appointment per request for the request's lifetime
    request_id = Column(Integer, ForeignKey("requests.id"), nullable=False, unique=True)

    # Scheduling
    date = Column(Date, nullable=False, index=True)
    time_slot = Column(String(50), nullable=False)  # e.g. "9:00 AM - 9:30 AM"
    purpose = Column(String(100), nullable=False)  # Request type at booking time

    # Status workflow: Scheduled → Completed | No-Show | Cancelled
    status = Column(String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Student only; the request side is never loaded from here
    student = relationship("User")

    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "date",
            "time_slot",
            unique=True,
            postgresql_where=ACTIVE_SLOT_PREDICATE,
            sqlite_where=ACTIVE_SLOT_PREDICATE,
        ),
    )
