"""Appointment service - Slot catalog, booking, rescheduling and outcomes"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...catalog import WorkflowCatalog
from ...exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ...models import RequestStatus, User
from ...models_appointment import Appointment, AppointmentStatus
from ..requests.service import NO_SHOW_COMMENT, RequestService
from ..requests.status_machine import BOOKABLE_STATUSES, parse_status
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)

# Outcomes an admin can record on an appointment
SETTABLE_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
    AppointmentStatus.CANCELLED,
)


class AppointmentService:
    """Service layer for appointment scheduling.

    Slot exclusivity is enforced by the uq_appointments_active_slot index;
    the checks here only produce a friendlier error before the write.
    """

    def __init__(self, db: Session, catalog: WorkflowCatalog):
        self.db = db
        self.catalog = catalog
        self.repo = AppointmentRepository()
        self.requests = RequestService(db, catalog)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_slots(self, day: date, exclude_appointment_id: Optional[int] = None) -> dict:
        """Catalog minus slots held on that date.

        Pass the appointment being edited as exclude_appointment_id so its own
        slot stays selectable.
        """
        held = set(self.repo.get_held_slots(self.db, day, exclude_appointment_id))
        all_slots = list(self.catalog.time_slots)
        return {
            "date": day,
            "allSlots": all_slots,
            "bookedSlots": [slot for slot in all_slots if slot in held],
            "availableSlots": [slot for slot in all_slots if slot not in held],
        }

    def list_available_slots(self, day: date) -> list[str]:
        return self.list_slots(day)["availableSlots"]

    def list_appointments(
        self, day: Optional[date] = None, status: Optional[str] = None
    ) -> list[Appointment]:
        if status:
            status = self._parse_status(status).value
        appointments = self.repo.list_appointments(self.db, day, status)
        return sorted(
            appointments, key=lambda a: (a.date, self.catalog.slot_order(a.time_slot), a.id)
        )

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book(
        self,
        request_id: int,
        day: date,
        slot: str,
        notes: Optional[str] = None,
        actor: Optional[User] = None,
    ) -> Appointment:
        """Book the request's one appointment and move it to Appointment Scheduled"""
        request = self.requests.get_request(request_id)

        if request.appointment_id is not None or self.repo.get_for_request(self.db, request.id):
            raise ConflictError("Appointment already scheduled for this request")

        self._validate_slot(slot)

        type_info = self.catalog.get_request_type(request.request_type)
        if not type_info or not type_info.requires_appointment:
            raise InvalidStateError(f"{request.request_type} requests do not need an appointment")

        if parse_status(request.status) not in BOOKABLE_STATUSES:
            raise InvalidStateError(f"Cannot schedule an appointment for a {request.status} request")

        if self.repo.is_slot_held(self.db, day, slot):
            raise ConflictError(f"Time slot {slot} on {day.isoformat()} is already booked")

        try:
            appointment = self.repo.add(
                self.db,
                Appointment(
                    student_id=request.student_id,
                    request_id=request.id,
                    date=day,
                    time_slot=slot,
                    purpose=request.request_type,
                    status=AppointmentStatus.SCHEDULED.value,
                    notes=(notes or "").strip() or None,
                ),
            )
            request.appointment_id = appointment.id
            self.requests.apply_status(
                request, RequestStatus.APPOINTMENT_SCHEDULED, actor=actor, via_booking=True
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Booking race lost for request {request_id} at {day} {slot}: {e.orig}")
            raise self._conflict_for(request_id, day, slot) from e

        self.db.refresh(appointment)
        logger.info(f"📅 Appointment {appointment.id} booked for request {request_id}: {day} {slot}")
        return appointment

    def reschedule(self, appointment_id: int, day: date, slot: str) -> Appointment:
        """Move an appointment; only date and slot change"""
        appointment = self.get_appointment(appointment_id)
        self._validate_slot(slot)

        if appointment.date == day and appointment.time_slot == slot:
            return appointment

        if self.repo.is_slot_held(self.db, day, slot, exclude_appointment_id=appointment.id):
            raise ConflictError(f"Time slot {slot} on {day.isoformat()} is already booked")

        previous = (appointment.date, appointment.time_slot)
        appointment.date = day
        appointment.time_slot = slot
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Reschedule race lost for appointment {appointment_id}: {e.orig}")
            raise ConflictError(f"Time slot {slot} on {day.isoformat()} is already booked") from e

        self.db.refresh(appointment)
        logger.info(
            f"📅 Appointment {appointment.id} rescheduled: {previous[0]} {previous[1]} → {day} {slot}"
        )
        return appointment

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def set_status(
        self,
        appointment_id: int,
        status: str,
        notes: Optional[str] = None,
        actor: Optional[User] = None,
    ) -> Appointment:
        """Record Completed / No-Show / Cancelled and cascade to the request"""
        appointment = self.get_appointment(appointment_id)
        target = self._parse_settable_status(status)
        day, slot = appointment.date, appointment.time_slot

        reviving = (
            appointment.status == AppointmentStatus.CANCELLED.value
            and target != AppointmentStatus.CANCELLED
        )
        if reviving and self.repo.is_slot_held(self.db, day, slot, exclude_appointment_id=appointment.id):
            raise ConflictError(f"Time slot {slot} on {day.isoformat()} has been rebooked")

        appointment.status = target.value
        if notes is not None:
            appointment.notes = notes.strip() or None

        if target in (AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW):
            self._cascade_to_request(appointment, target, actor)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Status change race lost for appointment {appointment_id}: {e.orig}")
            raise ConflictError(f"Time slot {slot} on {day.isoformat()} is already booked") from e

        self.db.refresh(appointment)
        logger.info(f"📅 Appointment {appointment.id} marked {target.value}")
        return appointment

    def update(
        self,
        appointment_id: int,
        day: Optional[date] = None,
        slot: Optional[str] = None,
        status: Optional[str] = None,
        notes: Optional[str] = None,
        actor: Optional[User] = None,
    ) -> Appointment:
        """Combined edit: reschedule first, then status and/or notes"""
        appointment = self.get_appointment(appointment_id)
        if status is not None:
            self._parse_settable_status(status)

        if day is not None or slot is not None:
            appointment = self.reschedule(
                appointment_id, day or appointment.date, slot or appointment.time_slot
            )

        if status is not None:
            return self.set_status(appointment_id, status, notes, actor)

        if notes is not None:
            appointment.notes = notes.strip() or None
            self.db.commit()
            self.db.refresh(appointment)

        return appointment

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _cascade_to_request(
        self, appointment: Appointment, target: AppointmentStatus, actor: Optional[User]
    ) -> None:
        request = self.requests.get_request(appointment.request_id)
        if request.status != RequestStatus.APPOINTMENT_SCHEDULED.value:
            logger.warning(
                f"⚠️ Request {request.id} is {request.status}; not cascading appointment {target.value}"
            )
            return

        if target == AppointmentStatus.COMPLETED:
            self.requests.apply_status(
                request, RequestStatus.COMPLETED, actor=actor, close_appointment=False
            )
        else:
            self.requests.apply_status(
                request,
                RequestStatus.UNDER_REVIEW,
                comment=NO_SHOW_COMMENT,
                actor=actor,
                close_appointment=False,
            )

    def _validate_slot(self, slot: str) -> None:
        if not self.catalog.is_valid_slot(slot):
            raise ValidationError(f"Invalid time slot: {slot}")

    def _parse_settable_status(self, value: str) -> AppointmentStatus:
        target = self._parse_status(value)
        if target not in SETTABLE_STATUSES:
            raise ValidationError(
                f"Appointment status must be one of: {', '.join(s.value for s in SETTABLE_STATUSES)}"
            )
        return target

    @staticmethod
    def _parse_status(value: str) -> AppointmentStatus:
        try:
            return AppointmentStatus(value)
        except ValueError:
            raise ValidationError(f"Invalid appointment status: {value}") from None

    def _conflict_for(self, request_id: int, day: date, slot: str) -> ConflictError:
        if self.repo.get_for_request(self.db, request_id):
            return ConflictError("Appointment already scheduled for this request")
        return ConflictError(f"Time slot {slot} on {day.isoformat()} is already booked")
