"""
Development-only routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from saasoty.core.config import settings
from saasoty.core.rbac import Actor, get_current_actor
from saasoty.db.seed import seed_samples
from saasoty.db.session import get_db

router = APIRouter(prefix="/api/debug", tags=["Debug"])


@router.post("/seed-samples")
async def seed_sample_data(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Seed demo requirements relevant to the caller's role (SEED_DEMO only)."""
    if not settings.SEED_DEMO:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Demo seeding is disabled",
        )
    return seed_samples(db, actor)
