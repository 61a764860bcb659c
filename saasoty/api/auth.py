"""
Authentication API routes.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from saasoty.db.session import get_db
from saasoty.db.models import User
from saasoty.core.rbac import Actor, get_current_actor
from saasoty.core.security import get_role_value
from saasoty.services.identity import ImpersonationVerifier, PasswordVerifier, issue_token

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

password_verifier = PasswordVerifier()
impersonation_verifier = ImpersonationVerifier()


# ============= SCHEMAS =============

class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class ImpersonateRequest(BaseModel):
    role: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: str


# ============= ROUTES =============

@router.post("/login", response_model=TokenResponse)
async def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate with email and password."""
    user = password_verifier.verify(db, email=login_data.email, password=login_data.password)
    return TokenResponse(**issue_token(db, user))


@router.post("/impersonate", response_model=TokenResponse)
async def impersonate(data: ImpersonateRequest, db: Session = Depends(get_db)):
    """Sign in as the demo user of a role (development only)."""
    user = impersonation_verifier.verify(db, role=data.role)
    return TokenResponse(**issue_token(db, user))


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Get current authenticated user."""
    user = db.get(User, actor.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=get_role_value(user.role),
    )
