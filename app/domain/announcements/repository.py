"""Announcement repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Announcement


class AnnouncementRepository:
    @staticmethod
    def get_by_id(db: Session, announcement_id: int) -> Optional[Announcement]:
        return db.query(Announcement).filter(Announcement.id == announcement_id).first()

    @staticmethod
    def list_all(db: Session) -> list[Announcement]:
        return (
            db.query(Announcement)
            .options(joinedload(Announcement.author))
            .order_by(Announcement.created_at.desc(), Announcement.id.desc())
            .all()
        )

    @staticmethod
    def list_visible(db: Session, now: datetime) -> list[Announcement]:
        """Active announcements that have not expired"""
        return (
            db.query(Announcement)
            .filter(
                Announcement.is_active.is_(True),
                or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
            )
            .order_by(Announcement.created_at.desc(), Announcement.id.desc())
            .all()
        )

    @staticmethod
    def create(db: Session, **data) -> Announcement:
        announcement = Announcement(**data)
        db.add(announcement)
        db.commit()
        db.refresh(announcement)
        return announcement

    @staticmethod
    def update(db: Session, announcement: Announcement, **updates) -> Announcement:
        for key, value in updates.items():
            if hasattr(announcement, key):
                setattr(announcement, key, value)

        db.commit()
        db.refresh(announcement)
        return announcement

    @staticmethod
    def delete(db: Session, announcement: Announcement) -> None:
        db.delete(announcement)
        db.commit()
