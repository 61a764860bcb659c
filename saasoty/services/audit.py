"""
Audit trail helpers shared by the workflow services.
"""
from typing import Optional

from sqlalchemy.orm import Session

from saasoty.core.logging import audit_logger
from saasoty.core.rbac import Actor
from saasoty.db.models import AuditLog


def record(
    db: Session,
    actor: Actor,
    action: str,
    entity_type: str,
    entity_id: Optional[int],
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction."""
    entry = AuditLog(
        user_id=actor.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
        ip_address=ip_address,
    )
    db.add(entry)
    return entry


def emit(entry: AuditLog, actor: Actor) -> None:
    """Write the committed audit row to the structured log."""
    audit_logger.log(
        action=entry.action,
        user_id=actor.id,
        role=actor.role.value,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        details=entry.details,
    )
