"""Appointment domain schemas"""

from datetime import date as date_type
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment for a request"""

    requestId: int
    date: date_type
    timeSlot: str
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Reschedule and/or change status in one call"""

    date: Optional[date_type] = None
    timeSlot: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("timeSlot", "status")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class AppointmentStudent(BaseModel):
    id: int
    studentId: str
    name: str
    email: str
    program: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: int
    requestId: int
    date: date_type
    timeSlot: str
    purpose: str
    status: str
    notes: Optional[str] = None
    student: Optional[AppointmentStudent] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        student = appointment.student
        return cls(
            id=appointment.id,
            requestId=appointment.request_id,
            date=appointment.date,
            timeSlot=appointment.time_slot,
            purpose=appointment.purpose,
            status=appointment.status,
            notes=appointment.notes,
            student=(
                AppointmentStudent(
                    id=student.id,
                    studentId=student.student_id,
                    name=student.name,
                    email=student.email,
                    program=student.program,
                )
                if student
                else None
            ),
            createdAt=appointment.created_at,
            updatedAt=appointment.updated_at,
        )


class AppointmentEnvelope(BaseModel):
    message: Optional[str] = None
    appointment: AppointmentResponse


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]


class SlotAvailabilityResponse(BaseModel):
    date: date_type
    allSlots: list[str]
    bookedSlots: list[str]
    availableSlots: list[str]
