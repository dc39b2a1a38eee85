"""
User management endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import structlog

from waleki.api.deps import get_current_user, get_current_admin, get_session_store
from waleki.crud import users as users_crud
from waleki.database.connection import get_database
from waleki.schemas.auth import CurrentUser, UserCreate, UserUpdate, UserResponse, PasswordChange
from waleki.services.auth import SessionStore

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.get("/users", response_model=List[UserResponse])
async def get_users(
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Get all users (admin only)"""
    return users_crud.list_users(db)

@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Get a specific user (admin only)"""
    return users_crud.get_user(db, user_id)

@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Create a new user (admin only)"""
    return users_crud.create_user(
        db,
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role
    )

@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Update username, email or role (admin only)"""
    return users_crud.update_user(db, user_id, user_data)

@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_database),
    store: SessionStore = Depends(get_session_store),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Delete a user and end their sessions (admin only)"""
    users_crud.delete_user(db, user_id, acting_user_id=current_user.id)
    store.delete_for_user(user_id)
    return {"message": "User deleted successfully"}

@router.post("/users/{user_id}/change-password")
async def change_password(
    user_id: int,
    passwords: PasswordChange,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Change a password; own account needs the current password, others need admin"""

    own_account = current_user.id == user_id
    if not own_account and current_user.role != "admin":
        logger.warning("Password change denied", user_id=current_user.id, target_user_id=user_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot change another user's password")

    users_crud.change_password(
        db,
        user_id,
        passwords.new_password,
        current_password=passwords.current_password,
        verify_current=own_account
    )
    return {"message": "Password changed successfully"}
