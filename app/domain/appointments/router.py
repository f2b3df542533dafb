"""Appointment router - admin scheduling endpoints"""

import logging
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...catalog import WorkflowCatalog, get_catalog
from ...database import get_db
from ...models import User
from .schemas import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    SlotAvailabilityResponse,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    catalog: WorkflowCatalog = Depends(get_catalog),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, catalog)


@router.get("/slots", response_model=SlotAvailabilityResponse)
async def get_slots(
    day: date_type = Query(..., alias="date"),
    appointmentId: Optional[int] = Query(None),
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    Get available time slots for a date.
    When editing an appointment pass appointmentId so its own slot stays available.
    """
    return SlotAvailabilityResponse(**service.list_slots(day, appointmentId))


@router.get("/appointments", response_model=AppointmentListResponse)
async def get_appointments(
    day: Optional[date_type] = Query(None, alias="date"),
    status: Optional[str] = Query(None),
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get all appointments, optionally for one date and/or status"""
    appointments = service.list_appointments(day, status)
    return AppointmentListResponse(
        appointments=[AppointmentResponse.from_model(a) for a in appointments]
    )


@router.get("/appointments/{appointment_id}", response_model=AppointmentEnvelope)
async def get_appointment(
    appointment_id: int,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(appointment_id)
    return AppointmentEnvelope(appointment=AppointmentResponse.from_model(appointment))


@router.post("/appointments", response_model=AppointmentEnvelope, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Create appointment for a request"""
    appointment = service.book(
        data.requestId, data.date, data.timeSlot, data.notes, actor=current_user
    )
    return AppointmentEnvelope(
        message="Appointment scheduled successfully",
        appointment=AppointmentResponse.from_model(appointment),
    )


@router.put("/appointments/{appointment_id}", response_model=AppointmentEnvelope)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Update appointment (reschedule, mark complete, etc.)"""
    appointment = service.update(
        appointment_id,
        day=data.date,
        slot=data.timeSlot,
        status=data.status,
        notes=data.notes,
        actor=current_user,
    )
    return AppointmentEnvelope(
        message="Appointment updated successfully",
        appointment=AppointmentResponse.from_model(appointment),
    )
