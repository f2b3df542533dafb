import uuid
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


class RequestStatus(str, Enum):
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "Under Review"
    PENDING_DEAN_APPROVAL = "Pending Dean Approval"
    APPOINTMENT_SCHEDULED = "Appointment Scheduled"
    APPROVED = "Approved"
    READY_FOR_PICKUP = "Ready for Pickup"
    REJECTED = "Rejected"
    RELEASED = "Released"
    COMPLETED = "Completed"


class AnnouncementType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String(20), default=UserRole.STUDENT.value, nullable=False, index=True)
    student_id = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Stored lower-cased
    hashed_password = Column(String(255), nullable=False)
    program = Column(String(255), nullable=True)
    year_level = Column(Integer, nullable=True)  # 1-5
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    requests = relationship("DocumentRequest", back_populates="student")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class DocumentRequest(Base):
    """A student's request for a registrar document or service"""

    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    request_type = Column(String(100), nullable=False, index=True)
    documents = Column(JSON, default=list, nullable=False)  # Ordered storage refs
    reason = Column(Text, nullable=True)

    # Status workflow: see domain/requests/status_machine.py
    status = Column(
        String(50), default=RequestStatus.SUBMITTED.value, nullable=False, index=True
    )
    admin_comment = Column(Text, nullable=True)

    # Minted once, on first entry into Approved / Ready for Pickup
    pickup_token = Column(String(64), unique=True, nullable=True, index=True)

    # Plain reference, resolved on demand through the appointment repository
    appointment_id = Column(
        Integer,
        ForeignKey("appointments.id", use_alter=True, name="fk_requests_appointment_id"),
        nullable=True,
    )

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    student = relationship("User", back_populates="requests")


class RequestStatusChange(Base):
    """Audit trail of status writes on a request"""

    __tablename__ = "request_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(
        Integer, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status = Column(String(50), nullable=True)
    to_status = Column(String(50), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=True)  # None for system cascades
    is_override = Column(Boolean, default=False, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    type = Column(String(20), default=AnnouncementType.INFO.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    author = relationship("User")
