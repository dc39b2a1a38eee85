"""
Operator accounts: CRUD and password changes
"""

from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from waleki.core.exceptions import ConflictError, NotFoundError, ValidationError
from waleki.models.user import User
from waleki.schemas.auth import UserUpdate
from waleki.services.auth import hash_password, verify_password

logger = structlog.get_logger(__name__)

USER_ROLES = ("admin", "user")

def _check_role(role: Optional[str]):
    if role not in USER_ROLES:
        raise ValidationError("Invalid role. Must be 'admin' or 'user'")

def _check_identity_free(db: Session, username: Optional[str], email: Optional[str], user_id: Optional[int] = None):
    """ConflictError when another account already uses username or email"""
    for column, value, message in (
        (User.username, username, "Username already exists"),
        (User.email, email, "Email already exists"),
    ):
        if value is None:
            continue
        query = db.query(User.id).filter(column == value)
        if user_id is not None:
            query = query.filter(User.id != user_id)
        if query.first():
            raise ConflictError(message)

def _commit_identity(db: Session):
    """Commit, mapping a unique-constraint race to ConflictError"""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        message = str(e.orig) if e.orig is not None else str(e)
        if "email" in message:
            raise ConflictError("Email already exists")
        raise ConflictError("Username already exists")

def list_users(db: Session) -> List[User]:
    """All accounts, most recently created first"""
    return db.query(User).order_by(desc(User.created_at), desc(User.id)).all()

def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user

def create_user(db: Session, username: str, email: str, password: str, role: Optional[str] = "user") -> User:
    """Create an operator account"""

    if not username or not email or not password or not role:
        raise ValidationError("Username, email, password, and role are required")
    _check_role(role)
    _check_identity_free(db, username, email)

    user = User(username=username, email=email, password_hash=hash_password(password), role=role)
    db.add(user)
    _commit_identity(db)
    db.refresh(user)

    logger.info("User created", user_id=user.id, username=user.username, role=user.role)
    return user

def update_user(db: Session, user_id: int, user_in: UserUpdate) -> User:
    """Change username, email or role; only supplied fields change"""

    update_data = {k: v for k, v in user_in.model_dump(exclude_unset=True).items() if v is not None}
    if not update_data:
        raise ValidationError("No valid fields to update")

    user = get_user(db, user_id)
    for field in ("username", "email"):
        if field in update_data and not update_data[field].strip():
            raise ValidationError(f"{field.capitalize()} cannot be empty")
    if "role" in update_data:
        _check_role(update_data["role"])
    _check_identity_free(db, update_data.get("username"), update_data.get("email"), user_id=user.id)

    for field, value in update_data.items():
        setattr(user, field, value)
    _commit_identity(db)
    db.refresh(user)

    logger.info("User updated", user_id=user.id, fields=sorted(update_data))
    return user

def delete_user(db: Session, user_id: int, acting_user_id: Optional[int] = None):
    """Delete an account; an operator cannot delete their own"""

    if acting_user_id is not None and acting_user_id == user_id:
        raise ValidationError("Cannot delete your own account")

    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("User deleted", user_id=user_id)

def change_password(
    db: Session,
    user_id: int,
    new_password: Optional[str],
    current_password: Optional[str] = None,
    verify_current: bool = False
) -> User:
    """Store a new password hash; verify_current demands the old password first"""

    if not new_password:
        raise ValidationError("New password is required")

    user = get_user(db, user_id)
    if verify_current:
        if not current_password:
            raise ValidationError("Current password is required")
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.commit()
    db.refresh(user)

    logger.info("Password changed", user_id=user.id)
    return user
