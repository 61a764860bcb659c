"""
Typed workflow failures.

Every failure carries a machine-readable ``kind``, a human-readable message
and, at most, the id of the entity the request was about. The HTTP layer
renders them through a single exception handler (see ``saasoty.main``).
"""
from typing import Optional


class WorkflowError(Exception):
    """Base class for every failure raised by the workflow gateway."""

    kind = "workflow_error"
    status_code = 400

    def __init__(self, message: str, entity_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "message": self.message,
            "entity_id": self.entity_id,
        }


class NotAuthorized(WorkflowError):
    """Role or ownership mismatch."""
    kind = "not_authorized"
    status_code = 403


class InvalidState(WorkflowError):
    """A transition guard failed against the current status."""
    kind = "invalid_state"
    status_code = 409


class InvalidTransition(InvalidState):
    """No edge in the transition table leaves the current status for this event."""


class DuplicateEstimate(InvalidState):
    kind = "duplicate_estimate"


class ValidationError(WorkflowError):
    """Malformed payload."""
    kind = "validation_error"
    status_code = 422


class NotFound(WorkflowError):
    kind = "not_found"
    status_code = 404
