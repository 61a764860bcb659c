"""
Estimate API routes.
"""
from fastapi import APIRouter, Depends

from saasoty.api.deps import get_gateway
from saasoty.api.schemas import EstimateCreate, EstimateResponse, estimate_to_response
from saasoty.core.rbac import Actor, get_current_actor
from saasoty.services.gateway import WorkflowGateway

router = APIRouter(prefix="/api/estimates", tags=["Estimates"])


@router.post("", response_model=EstimateResponse, status_code=201)
async def submit_estimate(
    data: EstimateCreate,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Send an estimate for a requirement awaiting one (AE only)."""
    estimate = gateway.submit_estimate(
        actor,
        data.requirement_id,
        data.amount,
        data.currency,
        data.breakdown,
        data.notes,
    )
    return estimate_to_response(estimate)
