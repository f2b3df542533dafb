"""Announcement schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models import AnnouncementType


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: AnnouncementType = AnnouncementType.INFO
    expiresAt: Optional[datetime] = None


class AnnouncementUpdate(BaseModel):
    """Partial update; expiresAt=null clears the expiry when sent explicitly"""

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    message: Optional[str] = Field(None, min_length=1, max_length=500)
    type: Optional[AnnouncementType] = None
    isActive: Optional[bool] = None
    expiresAt: Optional[datetime] = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    isActive: bool
    createdBy: int
    createdByName: Optional[str] = None
    expiresAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class AnnouncementListResponse(BaseModel):
    announcements: list[AnnouncementResponse]


class AnnouncementEnvelope(BaseModel):
    message: str
    announcement: AnnouncementResponse
