import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User, UserRole
from .security_utils import create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(user: User) -> str:
    """Issue an access token carrying the user id and role"""
    return create_jwt_token({"sub": str(user.id), "role": user.role})


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer access token"""

    if not credentials:
        logger.warning("❌ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    payload = verify_jwt_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Registrar staff only"""
    if user.role != UserRole.ADMIN.value:
        logger.warning(f"⚠️ User {user.id} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Access denied. Admin only.")
    return user


async def require_student(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.STUDENT.value:
        raise HTTPException(status_code=403, detail="Access denied. Students only.")
    return user
