"""Request service - Request lifecycle: creation, status transitions, deletion"""

import logging
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...catalog import RequestTypeInfo, WorkflowCatalog
from ...config import MAX_UPLOAD_FILES
from ...exceptions import NotFoundError, StorageError, ValidationError
from ...models import DocumentRequest, RequestStatus, RequestStatusChange, User
from ...models_appointment import Appointment, AppointmentStatus
from ...security_utils import generate_pickup_token
from ...services.document_storage import DocumentStorage, DocumentUpload, validate_document
from ..appointments.repository import AppointmentRepository
from .repository import RequestRepository
from .status_machine import TOKEN_STATUSES, check_transition, parse_status

logger = logging.getLogger(__name__)

NO_SHOW_COMMENT = "Student did not show up for scheduled appointment"

PENDING_REVIEW_STATUSES = (
    RequestStatus.SUBMITTED.value,
    RequestStatus.UNDER_REVIEW.value,
    RequestStatus.PENDING_DEAN_APPROVAL.value,
)


class RequestService:
    """Service layer for the request lifecycle"""

    def __init__(
        self,
        db: Session,
        catalog: WorkflowCatalog,
        storage: Optional[DocumentStorage] = None,
    ):
        self.db = db
        self.catalog = catalog
        self.storage = storage
        self.repo = RequestRepository()
        self.appointments = AppointmentRepository()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_request_types(self) -> dict[str, RequestTypeInfo]:
        return dict(self.catalog.request_types)

    def get_request(self, request_id: int) -> DocumentRequest:
        request = self.repo.get_by_id(self.db, request_id)
        if not request:
            raise NotFoundError("Request not found")
        return request

    def get_request_for_student(self, request_id: int, student: User) -> DocumentRequest:
        request = self.repo.get_for_student(self.db, request_id, student.id)
        if not request:
            raise NotFoundError("Request not found")
        return request

    def list_requests_for_student(self, student: User) -> list[DocumentRequest]:
        return self.repo.list_for_student(self.db, student.id)

    def list_requests(
        self, status: Optional[str] = None, request_type: Optional[str] = None
    ) -> list[DocumentRequest]:
        if status:
            status = parse_status(status).value
        return self.repo.list_requests(self.db, status, request_type)

    def get_appointment(self, request: DocumentRequest) -> Optional[Appointment]:
        """Resolve the request's appointment on demand"""
        if request.appointment_id is None:
            return None
        return self.appointments.get_by_id(self.db, request.appointment_id)

    def get_history(self, request_id: int) -> list[RequestStatusChange]:
        self.get_request(request_id)
        return self.repo.get_history(self.db, request_id)

    def get_stats(self, today: Optional[date] = None) -> dict:
        """Dashboard counts"""
        by_status = self.repo.count_by_status(self.db)
        return {
            "total": sum(by_status.values()),
            "byStatus": {s.value: by_status.get(s.value, 0) for s in RequestStatus},
            "pendingReview": sum(by_status.get(s, 0) for s in PENDING_REVIEW_STATUSES),
            "readyForPickup": by_status.get(RequestStatus.READY_FOR_PICKUP.value, 0)
            + by_status.get(RequestStatus.APPROVED.value, 0),
            "appointmentsToday": self.appointments.count_scheduled_on(
                self.db, today or date.today()
            ),
        }

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_request(
        self,
        student: User,
        request_type: str,
        reason: Optional[str] = None,
        uploads: Sequence[DocumentUpload] = (),
    ) -> DocumentRequest:
        """Create a new request in Submitted, storing any uploaded documents"""
        logger.info(f"📥 Creating {request_type!r} request for student {student.id}")

        type_info = self.catalog.get_request_type(request_type)
        if not type_info:
            raise ValidationError(f"Invalid request type: {request_type}")

        uploads = list(uploads)
        if uploads and type_info.requires_appointment:
            raise ValidationError(
                f"Documents for {type_info.label} are presented in person at the appointment"
            )
        if len(uploads) > MAX_UPLOAD_FILES:
            raise ValidationError(f"A request can include at most {MAX_UPLOAD_FILES} documents")
        for upload in uploads:
            is_valid, error = validate_document(upload)
            if not is_valid:
                raise ValidationError(error)

        refs: list[str] = []
        try:
            for upload in uploads:
                refs.append(self._require_storage().store(upload))

            request = DocumentRequest(
                student_id=student.id,
                request_type=request_type,
                reason=(reason or "").strip() or None,
                documents=refs,
                status=RequestStatus.SUBMITTED.value,
            )
            self.repo.add(self.db, request)
            self.repo.add_status_change(
                self.db, request.id, None, RequestStatus.SUBMITTED.value, changed_by=student.id
            )
            self.db.commit()
        except (StorageError, SQLAlchemyError):
            self.db.rollback()
            self._discard_documents(refs)
            raise

        self.db.refresh(request)
        logger.info(f"✅ Request {request.id} submitted ({request_type})")
        return request

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def update_status(
        self,
        request_id: int,
        status: str,
        admin_comment: Optional[str] = None,
        actor: Optional[User] = None,
        override: bool = False,
    ) -> DocumentRequest:
        """Admin status change, validated against the transition table"""
        request = self.get_request(request_id)
        self.apply_status(
            request,
            parse_status(status),
            comment=admin_comment,
            actor=actor,
            override=override,
        )
        self.db.commit()
        self.db.refresh(request)
        return request

    def apply_status(
        self,
        request: DocumentRequest,
        target: RequestStatus,
        comment: Optional[str] = None,
        actor: Optional[User] = None,
        override: bool = False,
        via_booking: bool = False,
        close_appointment: bool = True,
    ) -> DocumentRequest:
        """Apply a status write to a loaded request without committing.

        Enforces the rejection comment rule, mints the pickup token on first
        entry into Approved / Ready for Pickup, closes the appointment when
        leaving Appointment Scheduled, and records the change.
        """
        comment = comment.strip() if comment else None
        current = parse_status(request.status)

        if target == RequestStatus.REJECTED and not comment:
            raise ValidationError("An admin comment is required when rejecting a request")

        if override and target != RequestStatus.APPOINTMENT_SCHEDULED:
            if target != current:
                logger.warning(
                    f"⚠️ Status override on request {request.id}: {current.value} → {target.value} "
                    f"by user {actor.id if actor else 'system'}"
                )
        else:
            check_transition(current, target, via_booking=via_booking)

        if (
            close_appointment
            and current == RequestStatus.APPOINTMENT_SCHEDULED
            and target in (RequestStatus.COMPLETED, RequestStatus.UNDER_REVIEW)
        ):
            closed_as = self._close_appointment(request, target)
            if closed_as == AppointmentStatus.NO_SHOW and not comment:
                comment = NO_SHOW_COMMENT

        request.status = target.value
        if comment:
            request.admin_comment = comment

        if target in TOKEN_STATUSES and not request.pickup_token:
            request.pickup_token = generate_pickup_token(request.public_id)
            logger.info(f"🎟️ Pickup token minted for request {request.id}")

        if target != current or comment or override:
            self.repo.add_status_change(
                self.db,
                request.id,
                current.value,
                target.value,
                changed_by=actor.id if actor else None,
                is_override=override and target != current,
                comment=comment,
            )
            logger.info(f"🔄 Request {request.id} transitioned: {current.value} → {target.value}")

        return request

    def _close_appointment(
        self, request: DocumentRequest, target: RequestStatus
    ) -> Optional[AppointmentStatus]:
        """Record the outcome on a still-scheduled appointment; returns the status set, if any"""
        appointment = self.appointments.get_for_request(self.db, request.id)
        if not appointment:
            logger.warning(f"⚠️ Request {request.id} is Appointment Scheduled but has no appointment")
            return None
        if appointment.status != AppointmentStatus.SCHEDULED.value:
            logger.info(
                f"ℹ️ Appointment {appointment.id} already {appointment.status}; leaving it unchanged"
            )
            return None

        outcome = (
            AppointmentStatus.COMPLETED
            if target == RequestStatus.COMPLETED
            else AppointmentStatus.NO_SHOW
        )
        appointment.status = outcome.value
        logger.info(f"📅 Appointment {appointment.id} marked {outcome.value}")
        return outcome

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_request(self, request_id: int) -> dict:
        """Delete a request with its documents and appointment.

        Document removal is best-effort: failures are logged and the records
        are deleted regardless.
        """
        request = self.get_request(request_id)

        self._discard_documents(list(request.documents or []))

        appointment = self.appointments.get_for_request(self.db, request.id)
        if appointment:
            request.appointment_id = None
            self.db.flush()
            self.appointments.delete(self.db, appointment)

        self.repo.delete(self.db, request)
        self.db.commit()

        logger.info(f"🗑️ Request {request_id} deleted")
        return {"message": "Request deleted successfully"}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_storage(self) -> DocumentStorage:
        if self.storage is None:
            raise StorageError("Document storage is not configured")
        return self.storage

    def _discard_documents(self, refs: list[str]) -> None:
        if not refs:
            return
        if self.storage is None:
            logger.warning(f"⚠️ No document storage configured; leaving {len(refs)} document(s)")
            return
        for ref in refs:
            try:
                self.storage.delete(ref)
            except StorageError as e:
                logger.warning(f"⚠️ Failed to delete document {ref}: {e}")
