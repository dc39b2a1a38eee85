"""
Request dependencies for authentication and role checks
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
import structlog

from waleki.core.config import settings
from waleki.database.connection import get_database
from waleki.models.user import User
from waleki.schemas.auth import CurrentUser
from waleki.services.auth import SessionStore, session_store

logger = structlog.get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

DEMO_USER = CurrentUser(id=0, role="admin")

def get_session_store() -> SessionStore:
    return session_store

def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    return credentials.credentials if credentials else None

def get_current_user(
    token: Optional[str] = Depends(get_token),
    store: SessionStore = Depends(get_session_store),
    db: Session = Depends(get_database)
) -> CurrentUser:
    """Resolve the bearer token to {id, role} or reject with 401"""

    if settings.demo_mode:
        return DEMO_USER

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")

    session = store.get(token)
    if not session:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    # The account may have been deleted since login
    user = db.get(User, session.user_id)
    if not user:
        store.delete(token)
        logger.warning("Session for missing user dropped", user_id=session.user_id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return CurrentUser(id=user.id, role=user.role)

def get_current_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "admin":
        logger.warning("Admin access denied", user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
