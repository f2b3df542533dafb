"""Request router - FastAPI endpoints for the request lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import require_admin, require_student
from ...catalog import RequestTypeInfo, WorkflowCatalog, get_catalog
from ...database import get_db
from ...models import DocumentRequest, User
from ...services.document_storage import DocumentStorage, DocumentUpload, get_document_storage
from ..appointments.schemas import AppointmentResponse
from .schemas import (
    RequestEnvelope,
    RequestListResponse,
    RequestResponse,
    RequestStatsResponse,
    RequestTypeResponse,
    RequestTypesResponse,
    StatusChangeResponse,
    StatusUpdateRequest,
    StudentSummary,
)
from .service import RequestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requests", tags=["Requests"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Requests"])


def get_request_service(
    db: Session = Depends(get_db),
    catalog: WorkflowCatalog = Depends(get_catalog),
    storage: DocumentStorage = Depends(get_document_storage),
) -> RequestService:
    """Dependency injection for RequestService"""
    return RequestService(db, catalog, storage)


def type_response(key: str, info: RequestTypeInfo) -> RequestTypeResponse:
    return RequestTypeResponse(
        key=key,
        label=info.label,
        requiresAppointment=info.requires_appointment,
        requiredDocuments=list(info.required_documents),
    )


def student_summary(user: Optional[User]) -> Optional[StudentSummary]:
    if user is None:
        return None
    return StudentSummary(
        id=user.id,
        studentId=user.student_id,
        name=user.name,
        email=user.email,
        program=user.program,
        yearLevel=user.year_level,
    )


def request_response(request: DocumentRequest, service: RequestService) -> RequestResponse:
    """Serialize a request, resolving its appointment explicitly"""
    info = service.catalog.get_request_type(request.request_type)
    appointment = service.get_appointment(request)
    documents = list(request.documents or [])
    storage = service.storage
    return RequestResponse(
        id=request.id,
        publicId=request.public_id,
        requestType=request.request_type,
        typeInfo=type_response(request.request_type, info) if info else None,
        documents=documents,
        documentUrls=[storage.url_for(ref) for ref in documents] if storage else [],
        reason=request.reason,
        status=request.status,
        adminComment=request.admin_comment,
        qrCode=request.pickup_token,
        appointmentId=request.appointment_id,
        appointment=AppointmentResponse.from_model(appointment) if appointment else None,
        student=student_summary(request.student),
        createdAt=request.created_at,
        updatedAt=request.updated_at,
    )


def types_response(service: RequestService) -> RequestTypesResponse:
    return RequestTypesResponse(
        types={key: type_response(key, info) for key, info in service.list_request_types().items()}
    )


# ============================================================================
# STUDENT ENDPOINTS
# ============================================================================


@router.get("/types", response_model=RequestTypesResponse)
async def get_request_types(
    _student: User = Depends(require_student),
    service: RequestService = Depends(get_request_service),
):
    """Get all request types with their requirements"""
    return types_response(service)


@router.post("", response_model=RequestEnvelope, status_code=201)
async def create_request(
    requestType: str = Form(...),
    reason: Optional[str] = Form(None),
    documents: list[UploadFile] = File(default=[]),
    current_user: User = Depends(require_student),
    service: RequestService = Depends(get_request_service),
):
    """Submit a new request with optional supporting documents"""
    uploads = []
    for document in documents:
        uploads.append(
            DocumentUpload(
                filename=document.filename or "document",
                content_type=document.content_type or "application/octet-stream",
                content=await document.read(),
            )
        )

    request = service.create_request(current_user, requestType, reason, uploads)
    return RequestEnvelope(
        message="Request submitted successfully",
        request=request_response(request, service),
    )


@router.get("", response_model=RequestListResponse)
async def get_my_requests(
    current_user: User = Depends(require_student),
    service: RequestService = Depends(get_request_service),
):
    """Get all requests for the current student"""
    requests = service.list_requests_for_student(current_user)
    return RequestListResponse(requests=[request_response(r, service) for r in requests])


@router.get("/{request_id}", response_model=RequestEnvelope)
async def get_my_request(
    request_id: int,
    current_user: User = Depends(require_student),
    service: RequestService = Depends(get_request_service),
):
    """Get one of the current student's requests"""
    request = service.get_request_for_student(request_id, current_user)
    return RequestEnvelope(request=request_response(request, service))


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@admin_router.get("/request-types", response_model=RequestTypesResponse)
async def admin_get_request_types(
    _admin: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    return types_response(service)


@admin_router.get("/stats", response_model=RequestStatsResponse)
async def get_stats(
    _admin: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    """Dashboard counts"""
    return RequestStatsResponse(**service.get_stats())


@admin_router.get("/requests", response_model=RequestListResponse)
async def admin_get_requests(
    status: Optional[str] = Query(None),
    requestType: Optional[str] = Query(None),
    _admin: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    """Get all requests, optionally filtered by status and type"""
    requests = service.list_requests(status, requestType)
    return RequestListResponse(requests=[request_response(r, service) for r in requests])


@admin_router.get("/requests/{request_id}", response_model=RequestEnvelope)
async def admin_get_request(
    request_id: int,
    _admin: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    request = service.get_request(request_id)
    return RequestEnvelope(request=request_response(request, service))


@admin_router.put("/requests/{request_id}", response_model=RequestEnvelope)
async def admin_update_request(
    request_id: int,
    data: StatusUpdateRequest,
    current_user: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    """Update request status (with optional comment / audited override)"""
    request = service.update_status(
        request_id,
        data.status,
        admin_comment=data.adminComment,
        actor=current_user,
        override=data.override,
    )
    return RequestEnvelope(
        message="Request updated successfully",
        request=request_response(request, service),
    )


@admin_router.delete("/requests/{request_id}")
async def admin_delete_request(
    request_id: int,
    _admin: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    """Delete request and associated files/appointment"""
    return service.delete_request(request_id)


@admin_router.get("/requests/{request_id}/history", response_model=list[StatusChangeResponse])
async def admin_get_request_history(
    request_id: int,
    _admin: User = Depends(require_admin),
    service: RequestService = Depends(get_request_service),
):
    return [
        StatusChangeResponse(
            id=change.id,
            fromStatus=change.from_status,
            toStatus=change.to_status,
            changedBy=change.changed_by,
            isOverride=change.is_override,
            comment=change.comment,
            createdAt=change.created_at,
        )
        for change in service.get_history(request_id)
    ]
