"""
Requirement lifecycle state machine.

The transition table below is the single source of truth for which status
an event moves a requirement to and which role may fire it. Everything else
(the gateway, the HTTP layer, the "what can I do next" listing) derives from
it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from saasoty.core.errors import InvalidTransition, NotAuthorized, ValidationError
from saasoty.core.rbac import Role
from saasoty.db.models import POStatus, RequirementStatus


class Event(str, Enum):
    CREATE_REQUIREMENT = "create_requirement"
    SEND_ESTIMATE = "send_estimate"
    GOOD_TO_GO = "good_to_go"
    REQUEST_CALL = "request_call"
    SUBMIT_PO = "submit_po"
    VERIFY = "verify"
    REJECT = "reject"


@dataclass(frozen=True)
class Transition:
    source: RequirementStatus
    event: Event
    target: RequirementStatus
    role: Role


S = RequirementStatus

TRANSITIONS: Tuple[Transition, ...] = (
    Transition(S.DRAFT, Event.CREATE_REQUIREMENT, S.PENDING_AE_ESTIMATE, Role.CLIENT),
    Transition(S.PENDING_AE_ESTIMATE, Event.SEND_ESTIMATE, S.AWAITING_CLIENT_DECISION, Role.AE),
    Transition(S.AWAITING_CLIENT_DECISION, Event.GOOD_TO_GO, S.CLIENT_GOOD_TO_GO, Role.CLIENT),
    Transition(S.AWAITING_CLIENT_DECISION, Event.REQUEST_CALL, S.AE_CALL_REQUESTED, Role.CLIENT),
    Transition(S.CLIENT_GOOD_TO_GO, Event.SUBMIT_PO, S.PENDING_VERIFICATION, Role.CLIENT),
    Transition(S.PENDING_VERIFICATION, Event.VERIFY, S.VERIFIED, Role.VERIFIER),
    Transition(S.PENDING_VERIFICATION, Event.REJECT, S.REJECTED, Role.VERIFIER),
)

_BY_SOURCE_EVENT: Dict[Tuple[RequirementStatus, Event], Transition] = {
    (t.source, t.event): t for t in TRANSITIONS
}
_EVENT_ROLES: Dict[Event, Role] = {t.event: t.role for t in TRANSITIONS}

INITIAL_STATUS = S.PENDING_AE_ESTIMATE
TERMINAL_STATUSES: FrozenSet[RequirementStatus] = frozenset(
    s for s in RequirementStatus if not any(t.source == s for t in TRANSITIONS)
)

# Request payload vocabulary -> events
CLIENT_ACTIONS: Dict[str, Event] = {
    "good_to_go": Event.GOOD_TO_GO,
    "request_call": Event.REQUEST_CALL,
}
REVIEW_DECISIONS: Dict[str, Event] = {
    POStatus.VERIFIED.value: Event.VERIFY,
    POStatus.REJECTED.value: Event.REJECT,
}
PO_STATUS_FOR_EVENT: Dict[Event, POStatus] = {
    Event.VERIFY: POStatus.VERIFIED,
    Event.REJECT: POStatus.REJECTED,
}


def required_role(event: Event) -> Role:
    return _EVENT_ROLES[Event(event)]


def authorize(event: Event, role: Union[Role, str]) -> None:
    """Raise NotAuthorized unless ``role`` may fire ``event``."""
    needed = required_role(event)
    if Role(role) != needed:
        raise NotAuthorized(
            f"Role '{Role(role).value}' may not {Event(event).value}; requires '{needed.value}'"
        )


def next_status(
    current: Union[RequirementStatus, str],
    event: Event,
    role: Union[Role, str],
    entity_id: Optional[int] = None,
) -> RequirementStatus:
    """
    Resolve the status ``event`` moves a requirement to.

    Role is checked before the source status, so a caller with the wrong
    role always gets NotAuthorized whatever state the requirement is in.
    """
    authorize(event, role)
    transition = _BY_SOURCE_EVENT.get((RequirementStatus(current), Event(event)))
    if transition is None:
        raise InvalidTransition(
            f"Cannot {Event(event).value} a requirement in status '{RequirementStatus(current).value}'",
            entity_id=entity_id,
        )
    return transition.target


def allowed_events(current: Union[RequirementStatus, str], role: Union[Role, str]) -> List[Event]:
    """Events ``role`` may fire from ``current``, in table order."""
    current = RequirementStatus(current)
    role = Role(role)
    return [t.event for t in TRANSITIONS if t.source == current and t.role == role]


def is_edge(source: Union[RequirementStatus, str], target: Union[RequirementStatus, str]) -> bool:
    """True if some event moves ``source`` directly to ``target``."""
    source, target = RequirementStatus(source), RequirementStatus(target)
    return any(t.source == source and t.target == target for t in TRANSITIONS)


def parse_event(mapping: Dict[str, Event], value: str, field: str) -> Event:
    """Translate a request vocabulary word (``good_to_go``, ``verified``...) to an event."""
    try:
        return mapping[value]
    except (KeyError, TypeError):
        allowed = ", ".join(sorted(mapping))
        raise ValidationError(f"{field} must be one of: {allowed}")
