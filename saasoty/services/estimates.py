"""
Estimate sub-workflow: the AE prices a requirement and hands it to the client.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from saasoty.core.errors import DuplicateEstimate, ValidationError
from saasoty.core.rbac import Actor, Role
from saasoty.db.models import Estimate
from saasoty.services import audit
from saasoty.services.lifecycle import Event, authorize, next_status
from saasoty.services.requirements import get_requirement
from saasoty.services.transactions import requirement_transaction

CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
CENT = Decimal("0.01")
# Estimate.amount is Numeric(12, 2)
MAX_INTEGER_DIGITS = 10
AMOUNT_LIMIT = Decimal(10) ** MAX_INTEGER_DIGITS


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """Non-negative money value with at most two decimal places."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    if amount >= AMOUNT_LIMIT:
        raise ValidationError(f"{field} must have at most {MAX_INTEGER_DIGITS} integer digits")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} must have at most two decimal places")
    return amount.quantize(CENT)


def parse_currency(value: Any) -> str:
    code = value.strip().upper() if isinstance(value, str) else ""
    if not CURRENCY_RE.match(code):
        raise ValidationError("currency must be a three-letter ISO 4217 code")
    return code


def parse_breakdown(value: Union[None, List[Any], Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Normalise line items to ``[{"label": str, "amount": Decimal}]``.

    Accepts a bare list or the ``{"items": [...]}`` wrapper older clients send.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        value = value.get("items", [])
    if not isinstance(value, list):
        raise ValidationError("breakdown must be a list of line items")

    items = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise ValidationError(f"breakdown[{index}] must be an object")
        label = item.get("label")
        if not isinstance(label, str) or not label.strip():
            raise ValidationError(f"breakdown[{index}].label is required")
        items.append({
            "label": label.strip(),
            "amount": parse_amount(item.get("amount"), f"breakdown[{index}].amount"),
        })
    return items


def submit_estimate(
    db: Session,
    actor: Actor,
    requirement_id: int,
    amount: Any,
    currency: str = "USD",
    breakdown: Union[None, List[Any], Dict[str, Any]] = None,
    notes: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Estimate:
    """
    AE attaches the estimate and the requirement moves to the client's desk.

    A requirement carries at most one active estimate; a second submission
    is rejected as DuplicateEstimate even if it races the first.
    """
    authorize(Event.SEND_ESTIMATE, actor.role)

    total = parse_amount(amount)
    code = parse_currency(currency)
    items = parse_breakdown(breakdown)
    if items and sum((i["amount"] for i in items), Decimal("0")) != total:
        raise ValidationError("amount must equal the sum of the breakdown line items")

    with requirement_transaction(db, requirement_id) as requirement:
        active = db.query(Estimate).filter(
            Estimate.requirement_id == requirement_id,
            Estimate.archived_at.is_(None),
        ).first()
        if active is not None:
            raise DuplicateEstimate(
                "An estimate has already been sent for this requirement",
                entity_id=requirement_id,
            )
        previous = requirement.status
        requirement.status = next_status(previous, Event.SEND_ESTIMATE, actor.role, entity_id=requirement_id)

        estimate = Estimate(
            requirement_id=requirement_id,
            amount=total,
            currency=code,
            breakdown=[{"label": i["label"], "amount": str(i["amount"])} for i in items],
            notes=notes,
            created_by=actor.id,
        )
        db.add(estimate)
        db.flush()
        entry = audit.record(
            db, actor, "send_estimate", "requirement", requirement_id,
            {
                "from_status": previous.value,
                "to_status": requirement.status.value,
                "estimate_id": estimate.id,
                "amount": str(total),
                "currency": code,
            },
            ip_address,
        )

    audit.emit(entry, actor)
    return estimate


def list_estimates(db: Session, actor: Actor, requirement_id: int) -> List[Estimate]:
    requirement = get_requirement(db, actor, requirement_id)
    return [
        e for e in requirement.estimates
        if e.archived_at is None or actor.role == Role.ADMIN
    ]
