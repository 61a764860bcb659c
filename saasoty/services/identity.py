"""
Identity verification: who is calling, kept apart from what they may do.

An ``IdentityVerifier`` turns presented credentials into a ``User``. The
access token minted for that user carries the role claim the workflow
guards check. Swap in another verifier (SSO, API keys...) without touching
the state machine.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from saasoty.core.config import settings
from saasoty.core.logging import get_logger
from saasoty.core.rbac import Role
from saasoty.core.security import create_access_token, get_role_value, verify_password
from saasoty.db.models import User

logger = get_logger(__name__)

DEMO_EMAIL_DOMAIN = "saasoty.local"


class IdentityVerifier(ABC):
    """Base interface for credential checks."""

    name: str = "base"

    @abstractmethod
    def verify(self, db: Session, **credentials) -> User:
        """Return the verified user or raise HTTPException(401/403)."""


class PasswordVerifier(IdentityVerifier):
    """Email + bcrypt password."""

    name = "password"

    def verify(self, db: Session, email: str = "", password: str = "", **_) -> User:
        user = db.query(User).filter(func.lower(User.email) == (email or "").lower()).first()

        if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is disabled",
            )
        return user


class ImpersonationVerifier(IdentityVerifier):
    """
    Sign in as the demo user of a role, no credential asked.

    Only usable when ALLOW_IMPERSONATION is on, which the settings refuse
    outside DEBUG.
    """

    name = "impersonation"

    def verify(self, db: Session, role: str = "", **_) -> User:
        if not settings.ALLOW_IMPERSONATION:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role impersonation is disabled",
            )
        try:
            role = Role(role)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown role '{role}'",
            )
        user = get_or_create_demo_user(db, role)
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is disabled",
            )
        logger.warning(f"Impersonation sign-in as role '{role.value}'")
        return user


def get_or_create_demo_user(db: Session, role: Role) -> User:
    email = f"demo-{role.value}@{DEMO_EMAIL_DOMAIN}"
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(
            email=email,
            name=f"Demo {role.value.upper() if role == Role.AE else role.value.title()}",
            role=role,
            is_active=True,
        )
        db.add(user)
        db.flush()
    return user


def issue_token(db: Session, user: User) -> dict:
    """Mint an access token for a verified user and stamp the login."""
    user.last_login = datetime.now(timezone.utc)
    db.commit()

    role = get_role_value(user.role)
    token_data = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": role,
    }
    return {
        "access_token": create_access_token(token_data),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": role,
        },
    }
