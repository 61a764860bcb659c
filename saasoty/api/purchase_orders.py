"""
Purchase order review API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from saasoty.api.deps import get_gateway
from saasoty.api.schemas import PurchaseOrderResponse, ReviewRequest, po_to_response
from saasoty.core.rbac import Actor, get_current_actor
from saasoty.db.models import POStatus
from saasoty.services.gateway import WorkflowGateway

router = APIRouter(prefix="/api/pos", tags=["Purchase Orders"])


@router.get("", response_model=List[PurchaseOrderResponse])
async def list_pos(
    status: Optional[str] = Query(POStatus.PENDING_VERIFICATION.value, description="Filter by status"),
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """POs awaiting verification (verifier, admin)."""
    return [po_to_response(po) for po in gateway.list_pending_pos(actor, status)]


@router.post("/{po_id}/review", response_model=PurchaseOrderResponse)
async def review_po(
    po_id: int,
    data: ReviewRequest,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Verify or reject a pending PO (verifier only)."""
    return po_to_response(gateway.review_po(actor, po_id, data.decision))
