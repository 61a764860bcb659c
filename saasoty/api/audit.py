"""
Audit Log API routes.
"""
from typing import List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy import desc, distinct

from saasoty.db.session import get_db
from saasoty.db.models import AuditLog
from saasoty.core.rbac import Actor, require_admin

router = APIRouter(prefix="/api/audit", tags=["Audit"])


# ============= SCHEMAS =============

class AuditLogResponse(BaseModel):
    id: int
    timestamp: Optional[datetime]
    user_id: Optional[int]
    user_email: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[int]
    details: Optional[dict]
    ip_address: Optional[str]


# ============= ROUTES =============

@router.get("/logs", response_model=List[AuditLogResponse])
async def list_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action type"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    entity_id: Optional[int] = Query(None, description="Filter by entity id"),
    user_id: Optional[int] = Query(None, description="Filter by user"),
    start_date: Optional[datetime] = Query(None, description="Start date filter"),
    end_date: Optional[datetime] = Query(None, description="End date filter"),
    limit: int = Query(100, le=500),
    offset: int = Query(0),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List workflow audit logs (admin only)."""
    query = db.query(AuditLog)

    if action:
        query = query.filter(AuditLog.action == action)

    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)

    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)

    if user_id:
        query = query.filter(AuditLog.user_id == user_id)

    if start_date:
        query = query.filter(AuditLog.timestamp >= start_date)

    if end_date:
        query = query.filter(AuditLog.timestamp <= end_date)

    logs = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).offset(offset).limit(limit).all()

    return [
        AuditLogResponse(
            id=log.id,
            timestamp=log.timestamp,
            user_id=log.user_id,
            user_email=log.user.email if log.user else None,
            action=log.action,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            details=log.details,
            ip_address=log.ip_address,
        )
        for log in logs
    ]


@router.get("/actions")
async def list_action_types(
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all unique action types in audit log."""
    actions = db.query(distinct(AuditLog.action)).all()
    return sorted(a[0] for a in actions)
