"""Announcement service"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError
from ...models import Announcement, User
from .repository import AnnouncementRepository
from .schemas import AnnouncementCreate, AnnouncementUpdate

logger = logging.getLogger(__name__)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC, matching the server defaults"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class AnnouncementService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AnnouncementRepository()

    def list_all(self) -> list[Announcement]:
        return self.repo.list_all(self.db)

    def list_visible(self, now: Optional[datetime] = None) -> list[Announcement]:
        return self.repo.list_visible(self.db, _naive_utc(now) or datetime.utcnow())

    def get(self, announcement_id: int) -> Announcement:
        announcement = self.repo.get_by_id(self.db, announcement_id)
        if not announcement:
            raise NotFoundError("Announcement not found")
        return announcement

    def create(self, data: AnnouncementCreate, author: User) -> Announcement:
        announcement = self.repo.create(
            self.db,
            title=data.title,
            message=data.message,
            type=data.type.value,
            created_by=author.id,
            expires_at=_naive_utc(data.expiresAt),
        )
        logger.info(f"📢 Announcement {announcement.id} created by user {author.id}")
        return announcement

    def update(self, announcement_id: int, data: AnnouncementUpdate) -> Announcement:
        announcement = self.get(announcement_id)
        provided = data.model_fields_set

        updates = {}
        if data.title is not None:
            updates["title"] = data.title
        if data.message is not None:
            updates["message"] = data.message
        if data.type is not None:
            updates["type"] = data.type.value
        if data.isActive is not None:
            updates["is_active"] = data.isActive
        if "expiresAt" in provided:
            updates["expires_at"] = _naive_utc(data.expiresAt)

        return self.repo.update(self.db, announcement, **updates)

    def delete(self, announcement_id: int) -> dict:
        announcement = self.get(announcement_id)
        self.repo.delete(self.db, announcement)
        logger.info(f"🗑️ Announcement {announcement_id} deleted")
        return {"message": "Announcement deleted successfully"}
