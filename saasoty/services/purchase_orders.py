"""
Purchase order sub-workflow: client submission and verifier review.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from saasoty.core.errors import InvalidState, NotAuthorized, NotFound, ValidationError
from saasoty.core.rbac import Actor, Role
from saasoty.db.models import POStatus, PurchaseOrder
from saasoty.services import audit
from saasoty.services.lifecycle import (
    PO_STATUS_FOR_EVENT, REVIEW_DECISIONS, Event, authorize, next_status, parse_event,
)
from saasoty.services.transactions import requirement_transaction

PO_NUMBER_MAX_LENGTH = 100


def _clean_po_number(value: Any) -> str:
    po_number = value.strip() if isinstance(value, str) else ""
    if not po_number:
        raise ValidationError("po_number is required")
    if len(po_number) > PO_NUMBER_MAX_LENGTH:
        raise ValidationError(f"po_number must be at most {PO_NUMBER_MAX_LENGTH} characters")
    return po_number


def submit_po(
    db: Session,
    actor: Actor,
    requirement_id: int,
    po_number: str,
    ip_address: Optional[str] = None,
) -> PurchaseOrder:
    """Owner commits to the estimate by submitting a PO for verification."""
    authorize(Event.SUBMIT_PO, actor.role)
    po_number = _clean_po_number(po_number)

    with requirement_transaction(db, requirement_id) as requirement:
        if requirement.owner_id != actor.id:
            raise NotAuthorized("Only the requirement owner may submit a PO", entity_id=requirement_id)
        previous = requirement.status
        requirement.status = next_status(previous, Event.SUBMIT_PO, actor.role, entity_id=requirement_id)

        taken = db.query(PurchaseOrder).filter(
            PurchaseOrder.requirement_id == requirement_id,
            PurchaseOrder.po_number == po_number,
        ).first()
        if taken is not None:
            raise ValidationError(
                f"PO number '{po_number}' is already used on this requirement",
                entity_id=requirement_id,
            )

        po = PurchaseOrder(
            requirement_id=requirement_id,
            po_number=po_number,
            status=POStatus.PENDING_VERIFICATION,
            submitted_by=actor.id,
        )
        db.add(po)
        db.flush()
        entry = audit.record(
            db, actor, "submit_po", "requirement", requirement_id,
            {
                "from_status": previous.value,
                "to_status": requirement.status.value,
                "po_id": po.id,
                "po_number": po_number,
            },
            ip_address,
        )

    audit.emit(entry, actor)
    return po


def list_pending_pos(
    db: Session,
    actor: Actor,
    status: Optional[str] = POStatus.PENDING_VERIFICATION.value,
) -> List[PurchaseOrder]:
    """POs awaiting review (or in ``status``), oldest submission first."""
    if actor.role not in (Role.VERIFIER, Role.ADMIN):
        raise NotAuthorized("Only verifiers may list purchase orders for review")

    query = db.query(PurchaseOrder).filter(PurchaseOrder.archived_at.is_(None))
    if status:
        try:
            query = query.filter(PurchaseOrder.status == POStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown PO status '{status}'")
    return query.order_by(PurchaseOrder.submitted_at, PurchaseOrder.id).all()


def review_po(
    db: Session,
    actor: Actor,
    po_id: int,
    decision: str,
    ip_address: Optional[str] = None,
) -> PurchaseOrder:
    """
    Verifier records ``verified`` or ``rejected`` on a pending PO.

    The owning requirement mirrors the decision in the same commit.
    """
    # Role first: a non-verifier is refused whatever the PO looks like
    if actor.role != Role.VERIFIER:
        raise NotAuthorized("Only a verifier may review purchase orders", entity_id=po_id)
    event = parse_event(REVIEW_DECISIONS, decision, "decision")
    authorize(event, actor.role)

    po = db.get(PurchaseOrder, po_id)
    if po is None or po.archived_at is not None:
        raise NotFound("Purchase order not found", entity_id=po_id)

    with requirement_transaction(db, po.requirement_id) as requirement:
        po = db.get(PurchaseOrder, po_id, with_for_update=True, populate_existing=True)
        if po.status != POStatus.PENDING_VERIFICATION:
            raise InvalidState(
                f"Purchase order is already {po.status.value}", entity_id=po_id
            )
        previous = requirement.status
        requirement.status = next_status(previous, event, actor.role, entity_id=requirement.id)

        po.status = PO_STATUS_FOR_EVENT[event]
        po.reviewed_by = actor.id
        po.decision_at = datetime.now(timezone.utc)
        entry = audit.record(
            db, actor, f"review_po_{po.status.value}", "purchase_order", po_id,
            {
                "from_status": previous.value,
                "to_status": requirement.status.value,
                "requirement_id": requirement.id,
            },
            ip_address,
        )

    audit.emit(entry, actor)
    return po
