import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_current_user
from ..database import get_db
from ..exceptions import ConflictError
from ..models import User, UserRole
from ..security_utils import hash_password_bcrypt, verify_password_bcrypt
from ..shared.validators import validate_email, validate_student_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterRequest(BaseModel):
    studentId: str
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., min_length=6)
    program: Optional[str] = None
    yearLevel: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("studentId")
    @classmethod
    def check_student_id(cls, v):
        return validate_student_id(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class LoginRequest(BaseModel):
    """Log in with either email or student ID"""

    email: Optional[str] = None
    studentId: Optional[str] = None
    password: str
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    id: int
    studentId: str
    name: str
    email: str
    role: str
    program: Optional[str] = None
    yearLevel: Optional[int] = None


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        studentId=user.student_id,
        name=user.name,
        email=user.email,
        role=user.role,
        program=user.program,
        yearLevel=user.year_level,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Create a student account"""
    existing = (
        db.query(User)
        .filter(or_(User.email == data.email, User.student_id == data.studentId))
        .first()
    )
    if existing:
        raise ConflictError("A user with this email or student ID already exists")

    user = User(
        role=UserRole.STUDENT.value,
        student_id=data.studentId,
        name=data.name,
        email=data.email,
        hashed_password=hash_password_bcrypt(data.password),
        program=data.program,
        year_level=data.yearLevel,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"✅ Student registered: {user.student_id}")
    return AuthResponse(token=create_access_token(user), user=user_response(user))


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if data.email:
        user = db.query(User).filter(User.email == data.email.strip().lower()).first()
    elif data.studentId:
        user = db.query(User).filter(User.student_id == data.studentId.strip()).first()
    else:
        raise HTTPException(status_code=400, detail="Email or student ID is required")

    if not user or not verify_password_bcrypt(data.password, user.hashed_password):
        logger.warning("❌ Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if data.role and user.role != data.role.value:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info(f"🔐 User {user.id} logged in")
    return AuthResponse(token=create_access_token(user), user=user_response(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return user_response(current_user)
