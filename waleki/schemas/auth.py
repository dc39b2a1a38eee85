"""
Authentication Pydantic schemas
"""

from typing import Optional, Literal
from datetime import datetime

from waleki.schemas.base import CamelModel

UserRole = Literal["admin", "user"]

class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None

class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class LoginResponse(CamelModel):
    user: UserResponse
    token: str

class UserCreate(CamelModel):
    """Schema for creating an account; completeness is checked by the user store"""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None

class UserUpdate(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None

class PasswordChange(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None

class CurrentUser(CamelModel):
    """Identity resolved from a session token"""
    id: int
    role: UserRole
