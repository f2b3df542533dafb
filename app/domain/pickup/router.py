"""Pickup router - token verification, release and QR codes"""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import require_admin, require_student
from ...catalog import WorkflowCatalog, get_catalog
from ...database import get_db
from ...models import User
from ..requests.router import get_request_service, request_response, student_summary
from ..requests.schemas import RequestEnvelope
from ..requests.service import RequestService
from .service import PickupService, VerificationFailure

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pickup"])

FAILURE_MESSAGES = {
    VerificationFailure.NOT_FOUND: "Invalid QR code",
    VerificationFailure.NOT_READY: "Request is not ready for pickup",
}


def get_pickup_service(
    db: Session = Depends(get_db),
    catalog: WorkflowCatalog = Depends(get_catalog),
) -> PickupService:
    """Dependency injection for PickupService"""
    return PickupService(db, catalog)


@router.get("/admin/verify/{token}")
async def verify_pickup_token(
    token: str,
    _admin: User = Depends(require_admin),
    service: PickupService = Depends(get_pickup_service),
    requests: RequestService = Depends(get_request_service),
):
    """
    Verify a presented pickup code.

    Unknown codes answer 404, codes for requests that are not ready answer 400.
    """
    result = service.verify(token)

    if not result.valid:
        status_code = 404 if result.reason == VerificationFailure.NOT_FOUND else 400
        content = {
            "valid": False,
            "reason": result.reason.value,
            "message": FAILURE_MESSAGES[result.reason],
        }
        if result.request is not None:
            content["status"] = result.request.status
        return JSONResponse(status_code=status_code, content=content)

    return {
        "valid": True,
        "request": request_response(result.request, requests).model_dump(mode="json"),
        "student": student_summary(result.student).model_dump(mode="json"),
    }


@router.put("/admin/release/{request_id}", response_model=RequestEnvelope)
async def release_request(
    request_id: int,
    current_user: User = Depends(require_admin),
    service: PickupService = Depends(get_pickup_service),
    requests: RequestService = Depends(get_request_service),
):
    """Mark request as released after the document is handed over"""
    request = service.release(request_id, actor=current_user)
    return RequestEnvelope(
        message="Request marked as released",
        request=request_response(request, requests),
    )


@router.get("/requests/{request_id}/qr")
async def get_pickup_qr(
    request_id: int,
    current_user: User = Depends(require_student),
    service: PickupService = Depends(get_pickup_service),
):
    """QR image of the student's pickup code"""
    png = service.get_qr_code(request_id, current_user)
    return Response(content=png, media_type="image/png")
