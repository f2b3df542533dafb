"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models_appointment import Appointment, AppointmentStatus


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.student))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_for_request(db: Session, request_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.request_id == request_id).first()

    @staticmethod
    def list_appointments(
        db: Session,
        day: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).options(joinedload(Appointment.student))

        if day:
            query = query.filter(Appointment.date == day)

        if status:
            query = query.filter(Appointment.status == status)

        return query.order_by(Appointment.date.asc(), Appointment.id.asc()).all()

    @staticmethod
    def get_held_slots(
        db: Session, day: date, exclude_appointment_id: Optional[int] = None
    ) -> list[str]:
        """Slots on a date held by non-cancelled appointments"""
        query = db.query(Appointment.time_slot).filter(
            Appointment.date == day,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return [slot for (slot,) in query.all()]

    @staticmethod
    def is_slot_held(
        db: Session, day: date, slot: str, exclude_appointment_id: Optional[int] = None
    ) -> bool:
        query = db.query(Appointment.id).filter(
            Appointment.date == day,
            Appointment.time_slot == slot,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return query.first() is not None

    @staticmethod
    def count_scheduled_on(db: Session, day: date) -> int:
        return (
            db.query(func.count(Appointment.id))
            .filter(
                Appointment.date == day,
                Appointment.status == AppointmentStatus.SCHEDULED.value,
            )
            .scalar()
        )

    @staticmethod
    def add(db: Session, appointment: Appointment) -> Appointment:
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.flush()
