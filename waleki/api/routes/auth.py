"""
Login, logout and current-user endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import structlog

from waleki.api.deps import get_current_user, get_session_store, get_token
from waleki.database.connection import get_database
from waleki.models.user import User
from waleki.schemas.auth import LoginRequest, LoginResponse, UserResponse, CurrentUser
from waleki.services.auth import SessionStore, authenticate_user, create_session

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.post("/auth/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_database),
    store: SessionStore = Depends(get_session_store)
):
    """Exchange username and password for a bearer token"""

    if not credentials.username or not credentials.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    user = authenticate_user(db, credentials.username, credentials.password)
    if not user:
        logger.warning("Failed login", username=credentials.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_session(user, store)
    return LoginResponse(user=UserResponse.model_validate(user), token=token)

@router.post("/auth/logout")
async def logout(
    token: Optional[str] = Depends(get_token),
    store: SessionStore = Depends(get_session_store)
):
    """Drop the session behind the bearer token"""
    if token:
        store.delete(token)
    return {"message": "Logged out successfully"}

@router.get("/auth/me", response_model=UserResponse)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_database)
):
    """Current user profile"""
    user = db.get(User, current_user.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user
