"""
Requirement creation, visibility, client decisions and archival.
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from saasoty.core.errors import InvalidState, NotAuthorized, NotFound, ValidationError
from saasoty.core.rbac import Actor, Role
from saasoty.db.models import (
    Estimate, POStatus, PurchaseOrder, Requirement, RequirementStatus,
    RequirementType, SoftwareSubtype,
)
from saasoty.services import audit
from saasoty.services.lifecycle import (
    CLIENT_ACTIONS, Event, allowed_events, authorize, next_status, parse_event,
)
from saasoty.services.transactions import requirement_transaction, transaction

DETAIL_TEXT_FIELDS = ("name", "expected_delivery_date", "expected_order_confirmation_date")


def _parse_type(value: Any) -> RequirementType:
    try:
        return RequirementType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in RequirementType)
        raise ValidationError(f"type must be one of: {allowed}")


def _parse_subtype(req_type: RequirementType, value: Any) -> Optional[SoftwareSubtype]:
    """Subtype is required for software and rejected for hardware."""
    present = value not in (None, "")
    if req_type == RequirementType.SOFTWARE:
        if not present:
            raise ValidationError("subtype is required for software requirements")
        try:
            return SoftwareSubtype(value)
        except ValueError:
            allowed = ", ".join(s.value for s in SoftwareSubtype)
            raise ValidationError(f"subtype must be one of: {allowed}")
    if present:
        raise ValidationError("subtype is only allowed for software requirements")
    return None


def _clean_details(details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Check the well-known keys; any other keys are kept as given."""
    if details is None:
        return {}
    if not isinstance(details, dict):
        raise ValidationError("details must be an object")

    cleaned = dict(details)
    for key in DETAIL_TEXT_FIELDS:
        if key in cleaned and cleaned[key] is not None and not isinstance(cleaned[key], str):
            raise ValidationError(f"details.{key} must be a string")

    if cleaned.get("quantity") is not None:
        quantity = cleaned["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
            raise ValidationError("details.quantity must be a number")
        if not math.isfinite(quantity) or quantity < 0 or quantity != int(quantity):
            raise ValidationError("details.quantity must be a non-negative whole number")
        cleaned["quantity"] = int(quantity)
    return cleaned


def can_view(actor: Actor, requirement: Requirement) -> bool:
    """
    Read access to a single requirement.

    Verifiers may open any requirement that reached the PO stage, including
    ones they already verified or rejected, so past decisions stay readable.
    Their listing (``list_requirements``) only shows pending work.
    """
    if actor.role == Role.CLIENT:
        return requirement.owner_id == actor.id
    if actor.role == Role.VERIFIER:
        return bool(requirement.purchase_orders)
    return True


def create_requirement(
    db: Session,
    actor: Actor,
    type: str,
    subtype: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> Requirement:
    """Client opens a new requirement; it starts awaiting an AE estimate."""
    status = next_status(RequirementStatus.DRAFT, Event.CREATE_REQUIREMENT, actor.role)
    req_type = _parse_type(type)
    req_subtype = _parse_subtype(req_type, subtype)
    cleaned = _clean_details(details)

    with transaction(db):
        requirement = Requirement(
            type=req_type,
            subtype=req_subtype,
            details=cleaned,
            status=status,
            owner_id=actor.id,
        )
        db.add(requirement)
        db.flush()
        entry = audit.record(
            db, actor, "create_requirement", "requirement", requirement.id,
            {
                "from_status": RequirementStatus.DRAFT.value,
                "to_status": status.value,
                "type": req_type.value,
                "subtype": req_subtype.value if req_subtype else None,
            },
            ip_address,
        )

    audit.emit(entry, actor)
    return requirement


def list_requirements(
    db: Session,
    actor: Actor,
    status: Optional[str] = None,
    include_archived: bool = False,
) -> List[Requirement]:
    """Requirements ``actor`` is entitled to see, newest first."""
    query = db.query(Requirement)

    if not (include_archived and actor.role == Role.ADMIN):
        query = query.filter(Requirement.archived_at.is_(None))

    if actor.role == Role.CLIENT:
        query = query.filter(Requirement.owner_id == actor.id)
    elif actor.role == Role.VERIFIER:
        query = query.filter(Requirement.purchase_orders.any(
            (PurchaseOrder.status == POStatus.PENDING_VERIFICATION)
            & PurchaseOrder.archived_at.is_(None)
        ))

    if status:
        try:
            query = query.filter(Requirement.status == RequirementStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown requirement status '{status}'")

    return query.order_by(desc(Requirement.created_at), desc(Requirement.id)).all()


def get_requirement(db: Session, actor: Actor, requirement_id: int) -> Requirement:
    requirement = db.get(Requirement, requirement_id)
    if requirement is None or (requirement.archived_at is not None and actor.role != Role.ADMIN):
        raise NotFound("Requirement not found", entity_id=requirement_id)
    if not can_view(actor, requirement):
        raise NotAuthorized("Not allowed to view this requirement", entity_id=requirement_id)
    return requirement


def available_actions(db: Session, actor: Actor, requirement_id: int) -> List[Event]:
    """Events the caller could fire on the requirement right now."""
    requirement = get_requirement(db, actor, requirement_id)
    if requirement.archived_at is not None:
        return []
    if actor.role == Role.CLIENT and requirement.owner_id != actor.id:
        return []
    return allowed_events(requirement.status, actor.role)


def client_action(
    db: Session,
    actor: Actor,
    requirement_id: int,
    action: str,
    ip_address: Optional[str] = None,
) -> Requirement:
    """Owner answers the estimate: ``good_to_go`` or ``request_call``."""
    event = parse_event(CLIENT_ACTIONS, action, "action")
    authorize(event, actor.role)

    with requirement_transaction(db, requirement_id) as requirement:
        if requirement.owner_id != actor.id:
            raise NotAuthorized("Only the requirement owner may decide on it", entity_id=requirement_id)
        previous = requirement.status
        requirement.status = next_status(previous, event, actor.role, entity_id=requirement_id)
        entry = audit.record(
            db, actor, f"client_{event.value}", "requirement", requirement_id,
            {"from_status": previous.value, "to_status": requirement.status.value},
            ip_address,
        )

    audit.emit(entry, actor)
    return requirement


def archive_requirement(
    db: Session,
    actor: Actor,
    requirement_id: int,
    ip_address: Optional[str] = None,
) -> Requirement:
    """Admin archives a requirement together with its estimates and POs."""
    if actor.role != Role.ADMIN:
        raise NotAuthorized("Only an admin may archive requirements", entity_id=requirement_id)

    with requirement_transaction(db, requirement_id, include_archived=True) as requirement:
        if requirement.archived_at is not None:
            raise InvalidState("Requirement is already archived", entity_id=requirement_id)
        now = datetime.now(timezone.utc)
        requirement.archived_at = now
        for model in (Estimate, PurchaseOrder):
            db.query(model).filter(
                model.requirement_id == requirement_id,
                model.archived_at.is_(None),
            ).update({model.archived_at: now}, synchronize_session="fetch")
        entry = audit.record(
            db, actor, "archive_requirement", "requirement", requirement_id,
            {"status": requirement.status.value},
            ip_address,
        )

    audit.emit(entry, actor)
    return requirement
