"""
Role-Based Access Control (RBAC) dependencies.

Roles are not hierarchical here: each workflow transition names the single
role allowed to fire it, and admin is a read-only oversight role.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from saasoty.core.security import decode_token, security
from saasoty.db.session import get_db


class Role(str, Enum):
    CLIENT = "client"
    AE = "ae"
    VERIFIER = "verifier"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """The signed-in principal a workflow call is made on behalf of."""
    id: int
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=Role(user.role), email=user.email, name=user.name)


def resolve_actor(db: Session, payload: dict) -> Actor:
    """
    Turn a decoded token into an Actor backed by the stored user.

    Role and active flag are read from the database, so a role change or a
    deactivation applies to tokens already issued.
    """
    from saasoty.db.models import User

    user_id_raw = payload.get("sub")
    if user_id_raw is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user identifier (sub)",
        )
    try:
        user_id = int(user_id_raw)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: bad user identifier (sub)",
        )

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Actor.from_user(user)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the bearer token into an Actor."""
    return resolve_actor(db, decode_token(credentials.credentials))


class RBACChecker:
    """Dependency for checking role-based access."""

    def __init__(self, *allowed_roles: Role):
        self.allowed_roles = frozenset(allowed_roles)

    async def __call__(
        self,
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db),
    ) -> Actor:
        actor = resolve_actor(db, decode_token(credentials.credentials))

        if actor.role not in self.allowed_roles:
            allowed = ", ".join(sorted(r.value for r in self.allowed_roles))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {allowed}",
            )

        return actor


# Convenience dependency for admin-only routes
require_admin = RBACChecker(Role.ADMIN)
