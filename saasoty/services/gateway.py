"""
Workflow gateway: the one surface through which callers read and advance
procurement requirements.

Each mutating call checks the caller's role and the entity's current state
before writing, commits the status change together with its payload, and
returns the updated entity. Failures are raised as ``WorkflowError``
subclasses and leave nothing behind.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from saasoty.core.rbac import Actor
from saasoty.db.models import Estimate, POStatus, PurchaseOrder, Requirement
from saasoty.services import estimates, purchase_orders, requirements
from saasoty.services.lifecycle import Event


class WorkflowGateway:

    def __init__(self, db: Session, ip_address: Optional[str] = None):
        self.db = db
        self.ip_address = ip_address

    # ---- requirements ----

    def create_requirement(
        self,
        actor: Actor,
        type: str,
        subtype: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Requirement:
        return requirements.create_requirement(
            self.db, actor, type, subtype, details, ip_address=self.ip_address
        )

    def list_requirements(
        self, actor: Actor, status: Optional[str] = None, include_archived: bool = False
    ) -> List[Requirement]:
        return requirements.list_requirements(self.db, actor, status, include_archived)

    def get_requirement(self, actor: Actor, requirement_id: int) -> Requirement:
        return requirements.get_requirement(self.db, actor, requirement_id)

    def available_actions(self, actor: Actor, requirement_id: int) -> List[Event]:
        return requirements.available_actions(self.db, actor, requirement_id)

    def client_action(self, actor: Actor, requirement_id: int, action: str) -> Requirement:
        return requirements.client_action(
            self.db, actor, requirement_id, action, ip_address=self.ip_address
        )

    def archive_requirement(self, actor: Actor, requirement_id: int) -> Requirement:
        return requirements.archive_requirement(
            self.db, actor, requirement_id, ip_address=self.ip_address
        )

    # ---- estimates ----

    def submit_estimate(
        self,
        actor: Actor,
        requirement_id: int,
        amount: Any,
        currency: str = "USD",
        breakdown: Any = None,
        notes: Optional[str] = None,
    ) -> Estimate:
        return estimates.submit_estimate(
            self.db, actor, requirement_id, amount, currency, breakdown, notes,
            ip_address=self.ip_address,
        )

    def list_estimates(self, actor: Actor, requirement_id: int) -> List[Estimate]:
        return estimates.list_estimates(self.db, actor, requirement_id)

    # ---- purchase orders ----

    def submit_po(self, actor: Actor, requirement_id: int, po_number: str) -> PurchaseOrder:
        return purchase_orders.submit_po(
            self.db, actor, requirement_id, po_number, ip_address=self.ip_address
        )

    def list_pending_pos(
        self, actor: Actor, status: Optional[str] = POStatus.PENDING_VERIFICATION.value
    ) -> List[PurchaseOrder]:
        return purchase_orders.list_pending_pos(self.db, actor, status)

    def review_po(self, actor: Actor, po_id: int, decision: str) -> PurchaseOrder:
        return purchase_orders.review_po(
            self.db, actor, po_id, decision, ip_address=self.ip_address
        )
