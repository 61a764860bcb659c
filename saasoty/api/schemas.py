"""
Response and request schemas shared by the workflow routers.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ============= REQUESTS =============

class RequirementCreate(BaseModel):
    type: str = Field(..., description="hardware | software")
    subtype: Optional[str] = Field(None, description="new | renewal | upgrade (software only)")
    details: Dict[str, Any] = Field(default_factory=dict)


class ClientActionRequest(BaseModel):
    action: str = Field(..., description="good_to_go | request_call")


class POSubmit(BaseModel):
    po_number: str = Field(..., max_length=100)


class EstimateCreate(BaseModel):
    requirement_id: int
    amount: Decimal
    currency: str = "USD"
    # A bare list of line items, or {"items": [...]}
    breakdown: Union[List[Dict[str, Any]], Dict[str, Any], None] = None
    notes: Optional[str] = None


class ReviewRequest(BaseModel):
    decision: str = Field(..., description="verified | rejected")


# ============= RESPONSES =============

class RequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    subtype: Optional[str]
    details: Dict[str, Any]
    status: str
    owner_id: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    archived_at: Optional[datetime]


class BreakdownItem(BaseModel):
    label: str
    amount: Decimal


class EstimateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    requirement_id: int
    amount: Decimal
    currency: str
    breakdown: List[BreakdownItem]
    notes: Optional[str]
    created_by: int
    created_at: Optional[datetime]


class PurchaseOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    requirement_id: int
    po_number: str
    status: str
    submitted_by: int
    submitted_at: Optional[datetime]
    reviewed_by: Optional[int]
    decision_at: Optional[datetime]


class ActionsResponse(BaseModel):
    requirement_id: int
    status: str
    actions: List[str]


def requirement_to_response(requirement) -> RequirementResponse:
    return RequirementResponse(
        id=requirement.id,
        type=requirement.type.value,
        subtype=requirement.subtype.value if requirement.subtype else None,
        details=requirement.details or {},
        status=requirement.status.value,
        owner_id=requirement.owner_id,
        created_at=requirement.created_at,
        updated_at=requirement.updated_at,
        archived_at=requirement.archived_at,
    )


def estimate_to_response(estimate) -> EstimateResponse:
    return EstimateResponse(
        id=estimate.id,
        requirement_id=estimate.requirement_id,
        amount=estimate.amount,
        currency=estimate.currency,
        breakdown=[BreakdownItem(**item) for item in (estimate.breakdown or [])],
        notes=estimate.notes,
        created_by=estimate.created_by,
        created_at=estimate.created_at,
    )


def po_to_response(po) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        id=po.id,
        requirement_id=po.requirement_id,
        po_number=po.po_number,
        status=po.status.value,
        submitted_by=po.submitted_by,
        submitted_at=po.submitted_at,
        reviewed_by=po.reviewed_by,
        decision_at=po.decision_at,
    )
