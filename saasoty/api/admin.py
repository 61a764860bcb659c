"""
Admin API routes - user management.
Requires ADMIN role for all endpoints.
"""
import re
from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Request
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from saasoty.db.session import get_db
from saasoty.db.models import User, AuditLog
from saasoty.core.security import get_password_hash, get_role_value
from saasoty.core.rbac import Actor, Role, require_admin
from saasoty.core.logging import audit_logger

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _validate_role(v: str) -> str:
    valid_roles = [r.value for r in Role]
    if v.lower() not in valid_roles:
        raise ValueError(f'Role must be one of: {", ".join(valid_roles)}')
    return v.lower()


# ============= SCHEMAS =============

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str
    role: str = "client"

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Enforce password requirements."""
        if len(v) < 10:
            raise ValueError('Password must be at least 10 characters')
        if not re.search(r'[A-Za-z]', v):
            raise ValueError('Password must contain at least one letter')
        if not re.search(r'[0-9]', v):
            raise ValueError('Password must contain at least one number')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: str) -> str:
        return _validate_role(v)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        return _validate_role(v) if v is not None else v


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: str
    is_active: bool
    created_at: Optional[datetime]
    last_login: Optional[datetime]


def _to_response(u: User) -> UserResponse:
    return UserResponse(
        id=u.id,
        email=u.email,
        name=u.name,
        role=get_role_value(u.role),
        is_active=bool(u.is_active),
        created_at=u.created_at,
        last_login=u.last_login,
    )


# ============= ROUTES =============

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all users."""
    return [_to_response(u) for u in db.query(User).order_by(User.email).all()]


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    request: Request,
    user_data: UserCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a user who signs in with a password.

    Password requirements:
    - Minimum 10 characters
    - At least one letter
    - At least one number
    """
    existing = db.query(User).filter(func.lower(User.email) == user_data.email.lower()).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        name=user_data.name,
        role=Role(user_data.role),
        is_active=True,
    )
    db.add(user)
    db.flush()

    db.add(AuditLog(
        user_id=actor.id,
        action="create_user",
        entity_type="user",
        entity_id=user.id,
        details={"email": user.email, "role": user_data.role},
        ip_address=request.client.host if request.client else None,
    ))
    db.commit()
    db.refresh(user)
    audit_logger.log("create_user", user_id=actor.id, role=actor.role.value,
                     entity_type="user", entity_id=user.id)

    return _to_response(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    request: Request,
    update_data: UserUpdate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Change a user's name, role or active flag."""
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.id == actor.id and update_data.is_active is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate your own account"
        )

    changes = update_data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if key == "role":
            value = Role(value)
        setattr(user, key, value)

    db.add(AuditLog(
        user_id=actor.id,
        action="update_user",
        entity_type="user",
        entity_id=user.id,
        details=changes,
        ip_address=request.client.host if request.client else None,
    ))
    db.commit()
    db.refresh(user)
    audit_logger.log("update_user", user_id=actor.id, role=actor.role.value,
                     entity_type="user", entity_id=user.id, details=changes)

    return _to_response(user)
