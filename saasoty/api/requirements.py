"""
Requirement API routes - creation, listing and client decisions.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from saasoty.api.deps import get_gateway, read_body
from saasoty.api.schemas import (
    ActionsResponse, ClientActionRequest, EstimateResponse, POSubmit,
    PurchaseOrderResponse, RequirementCreate, RequirementResponse,
    estimate_to_response, po_to_response, requirement_to_response,
)
from saasoty.core.rbac import Actor, get_current_actor
from saasoty.services.gateway import WorkflowGateway

router = APIRouter(prefix="/api/requirements", tags=["Requirements"])


@router.post("", response_model=RequirementResponse, status_code=201)
async def create_requirement(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Create a requirement (client only). Accepts JSON or form data with ``details`` as a JSON string."""
    data = await read_body(request, RequirementCreate, json_fields=("details",))
    requirement = gateway.create_requirement(actor, data.type, data.subtype, data.details)
    return requirement_to_response(requirement)


@router.get("", response_model=List[RequirementResponse])
async def list_requirements(
    status: Optional[str] = Query(None, description="Filter by status"),
    include_archived: bool = Query(False, description="Admin only"),
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """List the requirements visible to the caller's role."""
    return [
        requirement_to_response(r)
        for r in gateway.list_requirements(actor, status, include_archived)
    ]


@router.get("/{requirement_id}", response_model=RequirementResponse)
async def get_requirement(
    requirement_id: int,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    return requirement_to_response(gateway.get_requirement(actor, requirement_id))


@router.get("/{requirement_id}/estimates", response_model=List[EstimateResponse])
async def list_estimates(
    requirement_id: int,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    return [estimate_to_response(e) for e in gateway.list_estimates(actor, requirement_id)]


@router.get("/{requirement_id}/actions", response_model=ActionsResponse)
async def list_actions(
    requirement_id: int,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Workflow events the caller may fire on this requirement now."""
    requirement = gateway.get_requirement(actor, requirement_id)
    return ActionsResponse(
        requirement_id=requirement_id,
        status=requirement.status.value,
        actions=[e.value for e in gateway.available_actions(actor, requirement_id)],
    )


@router.post("/{requirement_id}/client-action", response_model=RequirementResponse)
async def client_action(
    requirement_id: int,
    data: ClientActionRequest,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Owner accepts the estimate (good_to_go) or asks the AE for a call."""
    requirement = gateway.client_action(actor, requirement_id, data.action)
    return requirement_to_response(requirement)


@router.post("/{requirement_id}/po", response_model=PurchaseOrderResponse, status_code=201)
async def submit_po(
    requirement_id: int,
    request: Request,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Owner submits a purchase order for verification (JSON or form data)."""
    data = await read_body(request, POSubmit)
    return po_to_response(gateway.submit_po(actor, requirement_id, data.po_number))


@router.post("/{requirement_id}/archive", response_model=RequirementResponse)
async def archive_requirement(
    requirement_id: int,
    actor: Actor = Depends(get_current_actor),
    gateway: WorkflowGateway = Depends(get_gateway),
):
    """Archive a requirement with its estimates and POs (admin only)."""
    return requirement_to_response(gateway.archive_requirement(actor, requirement_id))
