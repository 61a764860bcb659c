"""
Demo data seeding for development ONLY.

Samples are produced by driving the real workflow (create, estimate,
decide, submit PO) as the demo users, so every seeded requirement has a
status history that matches the transition table.

WARNING: never enable SEED_DEMO=true in production.
"""
from decimal import Decimal
from typing import Dict

from sqlalchemy.orm import Session

from saasoty.core.logging import get_logger
from saasoty.core.rbac import Actor, Role
from saasoty.db.models import POStatus, PurchaseOrder, Requirement, RequirementStatus
from saasoty.services.gateway import WorkflowGateway
from saasoty.services.identity import get_or_create_demo_user

logger = get_logger(__name__)

SAMPLE_REQUIREMENTS = [
    ("hardware", None, {
        "name": "Developer laptops",
        "quantity": 12,
        "expected_delivery_date": "2026-12-01",
        "expected_order_confirmation_date": "2026-11-15",
    }),
    ("software", "renewal", {
        "name": "Design suite seats",
        "quantity": 25,
        "expected_delivery_date": "2026-11-30",
        "expected_order_confirmation_date": "2026-11-10",
    }),
]


def _demo_actor(db: Session, role: Role) -> Actor:
    user = get_or_create_demo_user(db, role)
    db.commit()
    return Actor.from_user(user)


def _estimate(gateway: WorkflowGateway, ae: Actor, requirement: Requirement):
    gateway.submit_estimate(
        ae, requirement.id, Decimal("999.00"), "USD",
        [{"label": "Item", "amount": "999.00"}], "Auto-estimate",
    )


def _seed_for_client(gateway: WorkflowGateway, client: Actor, ae: Actor) -> int:
    if gateway.list_requirements(client):
        return 0
    created = []
    for req_type, subtype, details in SAMPLE_REQUIREMENTS:
        created.append(gateway.create_requirement(client, req_type, subtype, details))
    # One sample already priced so the client has a decision to make
    _estimate(gateway, ae, created[0])
    return len(created)


def _seed_for_ae(gateway: WorkflowGateway, ae: Actor, client: Actor) -> int:
    if gateway.list_requirements(ae, status=RequirementStatus.PENDING_AE_ESTIMATE.value):
        return 0
    req_type, subtype, details = SAMPLE_REQUIREMENTS[0]
    gateway.create_requirement(client, req_type, subtype, details)
    return 1


def _seed_for_verifier(gateway: WorkflowGateway, client: Actor, ae: Actor) -> int:
    db = gateway.db
    pending = db.query(PurchaseOrder).filter(
        PurchaseOrder.status == POStatus.PENDING_VERIFICATION,
        PurchaseOrder.archived_at.is_(None),
    ).first()
    if pending is not None:
        return 0
    req_type, subtype, details = SAMPLE_REQUIREMENTS[1]
    requirement = gateway.create_requirement(client, req_type, subtype, details)
    _estimate(gateway, ae, requirement)
    gateway.client_action(client, requirement.id, "good_to_go")
    gateway.submit_po(client, requirement.id, f"PO-DEMO-{requirement.id}")
    return 1


def seed_samples(db: Session, actor: Actor) -> Dict[str, int]:
    """Seed the samples relevant to ``actor``'s role. Idempotent per role."""
    gateway = WorkflowGateway(db)
    client = actor if actor.role == Role.CLIENT else _demo_actor(db, Role.CLIENT)
    ae = actor if actor.role == Role.AE else _demo_actor(db, Role.AE)

    created = 0
    if actor.role == Role.CLIENT:
        created += _seed_for_client(gateway, client, ae)
    elif actor.role == Role.AE:
        created += _seed_for_ae(gateway, ae, client)
    elif actor.role == Role.VERIFIER:
        created += _seed_for_verifier(gateway, client, ae)
    else:
        created += _seed_for_ae(gateway, ae, client)
        created += _seed_for_verifier(gateway, client, ae)

    logger.info(f"Seeded {created} sample requirement(s) for role '{actor.role.value}'")
    return {"role": actor.role.value, "created_requirements": created}
