"""Request repository - Database operations for document requests"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import DocumentRequest, RequestStatusChange


class RequestRepository:
    """Repository for request database operations.

    Methods add and flush; the calling service owns the commit.
    """

    @staticmethod
    def get_by_id(db: Session, request_id: int) -> Optional[DocumentRequest]:
        return (
            db.query(DocumentRequest)
            .options(joinedload(DocumentRequest.student))
            .filter(DocumentRequest.id == request_id)
            .first()
        )

    @staticmethod
    def get_for_student(db: Session, request_id: int, student_id: int) -> Optional[DocumentRequest]:
        """Get a request only if it belongs to the student"""
        return (
            db.query(DocumentRequest)
            .options(joinedload(DocumentRequest.student))
            .filter(DocumentRequest.id == request_id, DocumentRequest.student_id == student_id)
            .first()
        )

    @staticmethod
    def get_by_pickup_token(db: Session, token: str) -> Optional[DocumentRequest]:
        return (
            db.query(DocumentRequest)
            .options(joinedload(DocumentRequest.student))
            .filter(DocumentRequest.pickup_token == token)
            .first()
        )

    @staticmethod
    def list_for_student(db: Session, student_id: int) -> list[DocumentRequest]:
        return (
            db.query(DocumentRequest)
            .filter(DocumentRequest.student_id == student_id)
            .order_by(DocumentRequest.created_at.desc(), DocumentRequest.id.desc())
            .all()
        )

    @staticmethod
    def list_requests(
        db: Session,
        status: Optional[str] = None,
        request_type: Optional[str] = None,
    ) -> list[DocumentRequest]:
        """All requests, newest first, with optional filters"""
        query = db.query(DocumentRequest).options(joinedload(DocumentRequest.student))

        if status:
            query = query.filter(DocumentRequest.status == status)

        if request_type:
            query = query.filter(DocumentRequest.request_type == request_type)

        return query.order_by(DocumentRequest.created_at.desc(), DocumentRequest.id.desc()).all()

    @staticmethod
    def add(db: Session, request: DocumentRequest) -> DocumentRequest:
        db.add(request)
        db.flush()
        return request

    @staticmethod
    def delete(db: Session, request: DocumentRequest) -> None:
        db.query(RequestStatusChange).filter(
            RequestStatusChange.request_id == request.id
        ).delete(synchronize_session=False)
        db.delete(request)
        db.flush()

    @staticmethod
    def add_status_change(
        db: Session,
        request_id: int,
        from_status: Optional[str],
        to_status: str,
        changed_by: Optional[int] = None,
        is_override: bool = False,
        comment: Optional[str] = None,
    ) -> RequestStatusChange:
        change = RequestStatusChange(
            request_id=request_id,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            is_override=is_override,
            comment=comment,
        )
        db.add(change)
        return change

    @staticmethod
    def get_history(db: Session, request_id: int) -> list[RequestStatusChange]:
        return (
            db.query(RequestStatusChange)
            .filter(RequestStatusChange.request_id == request_id)
            .order_by(RequestStatusChange.id.asc())
            .all()
        )

    @staticmethod
    def count_by_status(db: Session) -> dict[str, int]:
        rows = (
            db.query(DocumentRequest.status, func.count(DocumentRequest.id))
            .group_by(DocumentRequest.status)
            .all()
        )
        return {status: count for status, count in rows}
