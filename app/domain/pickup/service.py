"""Pickup service - Claim token verification and release at the counter"""

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import qrcode
from sqlalchemy.orm import Session

from ...catalog import WorkflowCatalog
from ...exceptions import InvalidStateError
from ...models import DocumentRequest, RequestStatus, User
from ..requests.repository import RequestRepository
from ..requests.service import RequestService
from ..requests.status_machine import PICKUP_VALID_STATUSES, RELEASABLE_STATUSES, parse_status

logger = logging.getLogger(__name__)


class VerificationFailure(str, Enum):
    NOT_FOUND = "not_found"
    NOT_READY = "not_ready"


@dataclass
class VerificationResult:
    valid: bool
    reason: Optional[VerificationFailure] = None
    request: Optional[DocumentRequest] = None
    student: Optional[User] = None


def render_qr_png(data: str) -> bytes:
    """Render a string as a PNG QR code"""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


class PickupService:
    """Service layer for pickup verification"""

    def __init__(self, db: Session, catalog: WorkflowCatalog):
        self.db = db
        self.repo = RequestRepository()
        self.requests = RequestService(db, catalog)

    def verify(self, token: str) -> VerificationResult:
        """Look up the request behind a presented token"""
        request = self.repo.get_by_pickup_token(self.db, token.strip())
        if not request:
            logger.warning("⚠️ Pickup token not recognised")
            return VerificationResult(valid=False, reason=VerificationFailure.NOT_FOUND)

        if parse_status(request.status) not in PICKUP_VALID_STATUSES:
            logger.info(f"ℹ️ Pickup token for request {request.id} presented while {request.status}")
            return VerificationResult(
                valid=False, reason=VerificationFailure.NOT_READY, request=request
            )

        return VerificationResult(valid=True, request=request, student=request.student)

    def release(self, request_id: int, actor: Optional[User] = None) -> DocumentRequest:
        """Hand the document over; releasing twice returns the released request"""
        request = self.requests.get_request(request_id)
        current = parse_status(request.status)

        if current == RequestStatus.RELEASED:
            return request

        if current not in RELEASABLE_STATUSES:
            raise InvalidStateError("Only approved requests can be marked as released")

        self.requests.apply_status(request, RequestStatus.RELEASED, actor=actor)
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"✅ Request {request.id} released to student {request.student_id}")
        return request

    def get_qr_code(self, request_id: int, student: User) -> bytes:
        """PNG QR of the student's own pickup token"""
        request = self.requests.get_request_for_student(request_id, student)
        if not request.pickup_token:
            raise InvalidStateError("This request has no pickup code yet")
        return render_qr_png(request.pickup_token)
