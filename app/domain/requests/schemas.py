"""Request domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ..appointments.schemas import AppointmentResponse


class RequestTypeResponse(BaseModel):
    """One entry of the request type catalog"""

    key: str
    label: str
    requiresAppointment: bool
    requiredDocuments: list[str]


class RequestTypesResponse(BaseModel):
    types: dict[str, RequestTypeResponse]


class StudentSummary(BaseModel):
    id: int
    studentId: str
    name: str
    email: str
    program: Optional[str] = None
    yearLevel: Optional[int] = None


class StatusUpdateRequest(BaseModel):
    """Schema for an admin status change"""

    status: str
    adminComment: Optional[str] = None
    # Bypass the transition table; recorded in the status history
    override: bool = False

    @field_validator("adminComment")
    @classmethod
    def strip_comment(cls, v):
        if v is not None:
            v = v.strip()
            return v or None
        return v


class RequestResponse(BaseModel):
    """Schema for request response"""

    id: int
    publicId: str
    requestType: str
    typeInfo: Optional[RequestTypeResponse] = None
    documents: list[str]
    documentUrls: list[str] = []
    reason: Optional[str] = None
    status: str
    adminComment: Optional[str] = None
    qrCode: Optional[str] = None
    appointmentId: Optional[int] = None
    appointment: Optional[AppointmentResponse] = None
    student: Optional[StudentSummary] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class RequestListResponse(BaseModel):
    requests: list[RequestResponse]


class RequestEnvelope(BaseModel):
    message: Optional[str] = None
    request: RequestResponse


class StatusChangeResponse(BaseModel):
    id: int
    fromStatus: Optional[str] = None
    toStatus: str
    changedBy: Optional[int] = None
    isOverride: bool
    comment: Optional[str] = None
    createdAt: Optional[datetime] = None


class RequestStatsResponse(BaseModel):
    total: int
    byStatus: dict[str, int]
    pendingReview: int
    readyForPickup: int
    appointmentsToday: int
