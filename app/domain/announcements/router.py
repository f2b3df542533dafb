"""Announcement router"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin, require_student
from ...database import get_db
from ...models import Announcement, User
from .schemas import (
    AnnouncementCreate,
    AnnouncementEnvelope,
    AnnouncementListResponse,
    AnnouncementResponse,
    AnnouncementUpdate,
)
from .service import AnnouncementService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Announcements"])


def get_announcement_service(db: Session = Depends(get_db)) -> AnnouncementService:
    return AnnouncementService(db)


def announcement_response(announcement: Announcement) -> AnnouncementResponse:
    return AnnouncementResponse(
        id=announcement.id,
        title=announcement.title,
        message=announcement.message,
        type=announcement.type,
        isActive=announcement.is_active,
        createdBy=announcement.created_by,
        createdByName=announcement.author.name if announcement.author else None,
        expiresAt=announcement.expires_at,
        createdAt=announcement.created_at,
        updatedAt=announcement.updated_at,
    )


@router.get("/requests/announcements", response_model=AnnouncementListResponse)
async def get_student_announcements(
    _student: User = Depends(require_student),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Active, unexpired announcements for students"""
    return AnnouncementListResponse(
        announcements=[announcement_response(a) for a in service.list_visible()]
    )


@router.get("/admin/announcements", response_model=AnnouncementListResponse)
async def get_announcements(
    _admin: User = Depends(require_admin),
    service: AnnouncementService = Depends(get_announcement_service),
):
    return AnnouncementListResponse(
        announcements=[announcement_response(a) for a in service.list_all()]
    )


@router.post("/admin/announcements", response_model=AnnouncementEnvelope, status_code=201)
async def create_announcement(
    data: AnnouncementCreate,
    current_user: User = Depends(require_admin),
    service: AnnouncementService = Depends(get_announcement_service),
):
    announcement = service.create(data, current_user)
    return AnnouncementEnvelope(
        message="Announcement created successfully",
        announcement=announcement_response(announcement),
    )


@router.put("/admin/announcements/{announcement_id}", response_model=AnnouncementEnvelope)
async def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdate,
    _admin: User = Depends(require_admin),
    service: AnnouncementService = Depends(get_announcement_service),
):
    announcement = service.update(announcement_id, data)
    return AnnouncementEnvelope(
        message="Announcement updated successfully",
        announcement=announcement_response(announcement),
    )


@router.delete("/admin/announcements/{announcement_id}")
async def delete_announcement(
    announcement_id: int,
    _admin: User = Depends(require_admin),
    service: AnnouncementService = Depends(get_announcement_service),
):
    return service.delete(announcement_id)
