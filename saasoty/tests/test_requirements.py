"""
Tests for requirement creation, role-aware listing, client decisions and archival.
"""
import pytest

from saasoty.core.errors import InvalidState, InvalidTransition, NotAuthorized, NotFound, ValidationError
from saasoty.db.models import AuditLog, Estimate, PurchaseOrder, RequirementStatus as S, SoftwareSubtype
from saasoty.services.lifecycle import Event

from conftest import HARDWARE_DETAILS


# ============= CREATE =============

class TestCreateRequirement:

    def test_hardware_requirement_starts_pending_estimate(self, gateway, client_actor):
        requirement = gateway.create_requirement(client_actor, "hardware", None, HARDWARE_DETAILS)

        assert requirement.id is not None
        assert requirement.status == S.PENDING_AE_ESTIMATE
        assert requirement.subtype is None
        assert requirement.owner_id == client_actor.id
        assert requirement.details["name"] == "Developer laptops"
        assert requirement.version == 1

    def test_software_requirement_keeps_subtype(self, gateway, client_actor):
        requirement = gateway.create_requirement(client_actor, "software", "upgrade", {"name": "IDE"})
        assert requirement.subtype == SoftwareSubtype.UPGRADE

    @pytest.mark.parametrize("subtype", [None, ""])
    def test_software_without_subtype_fails(self, gateway, client_actor, subtype):
        with pytest.raises(ValidationError):
            gateway.create_requirement(client_actor, "software", subtype, {})

    def test_software_with_unknown_subtype_fails(self, gateway, client_actor):
        with pytest.raises(ValidationError):
            gateway.create_requirement(client_actor, "software", "lease", {})

    def test_hardware_with_subtype_is_rejected(self, gateway, client_actor):
        with pytest.raises(ValidationError) as exc_info:
            gateway.create_requirement(client_actor, "hardware", "new", {})
        assert "software" in exc_info.value.message

    def test_unknown_type_fails(self, gateway, client_actor):
        with pytest.raises(ValidationError):
            gateway.create_requirement(client_actor, "services", None, {})

    @pytest.mark.parametrize("quantity", [-1, 2.5, "three", True])
    def test_bad_quantity_fails(self, gateway, client_actor, quantity):
        with pytest.raises(ValidationError):
            gateway.create_requirement(client_actor, "hardware", None, {"quantity": quantity})

    def test_extra_detail_keys_are_kept(self, gateway, client_actor):
        requirement = gateway.create_requirement(
            client_actor, "hardware", None, {"quantity": 4.0, "cost_center": "R&D"}
        )
        assert requirement.details == {"quantity": 4, "cost_center": "R&D"}

    @pytest.mark.parametrize("role", ["ae", "verifier", "admin"])
    def test_only_clients_create(self, gateway, actors, db_session, role):
        with pytest.raises(NotAuthorized):
            gateway.create_requirement(actors[role], "hardware", None, {})
        assert gateway.list_requirements(actors["admin"]) == []

    def test_creation_is_audited(self, gateway, client_actor, db_session):
        requirement = gateway.create_requirement(client_actor, "hardware", None, {})
        entry = db_session.query(AuditLog).filter(AuditLog.entity_id == requirement.id).one()
        assert entry.action == "create_requirement"
        assert entry.details["from_status"] == "draft"
        assert entry.details["to_status"] == "pending_ae_estimate"


# ============= LISTING =============

class TestListRequirements:

    def test_client_sees_only_own(self, gateway, actors):
        mine = gateway.create_requirement(actors["client"], "hardware", None, {})
        gateway.create_requirement(actors["other_client"], "hardware", None, {})

        assert [r.id for r in gateway.list_requirements(actors["client"])] == [mine.id]

    def test_ae_and_admin_see_everything(self, gateway, actors):
        gateway.create_requirement(actors["client"], "hardware", None, {})
        gateway.create_requirement(actors["other_client"], "software", "new", {})

        assert len(gateway.list_requirements(actors["ae"])) == 2
        assert len(gateway.list_requirements(actors["admin"])) == 2

    def test_newest_first(self, gateway, actors):
        first = gateway.create_requirement(actors["client"], "hardware", None, {})
        second = gateway.create_requirement(actors["client"], "hardware", None, {})
        assert [r.id for r in gateway.list_requirements(actors["client"])] == [second.id, first.id]

    def test_status_filter(self, gateway, actors, requirement_in):
        waiting, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        requirement_in(S.PENDING_AE_ESTIMATE)

        listed = gateway.list_requirements(actors["ae"], status="awaiting_client_decision")
        assert [r.id for r in listed] == [waiting.id]

    def test_unknown_status_filter_fails(self, gateway, actors):
        with pytest.raises(ValidationError):
            gateway.list_requirements(actors["ae"], status="done")

    def test_verifier_sees_only_pending_po_requirements(self, gateway, actors, requirement_in):
        pending, _ = requirement_in(S.PENDING_VERIFICATION)
        requirement_in(S.CLIENT_GOOD_TO_GO)
        requirement_in(S.VERIFIED)

        assert [r.id for r in gateway.list_requirements(actors["verifier"])] == [pending.id]


class TestGetRequirement:

    def test_verifier_reads_decided_requirement_but_does_not_list_it(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.VERIFIED)

        assert gateway.get_requirement(actors["verifier"], requirement.id).status == S.VERIFIED
        assert gateway.list_requirements(actors["verifier"]) == []

    def test_verifier_cannot_read_before_po(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.CLIENT_GOOD_TO_GO)
        with pytest.raises(NotAuthorized):
            gateway.get_requirement(actors["verifier"], requirement.id)

    def test_owner_can_read(self, gateway, actors):
        requirement = gateway.create_requirement(actors["client"], "hardware", None, {})
        assert gateway.get_requirement(actors["client"], requirement.id).id == requirement.id

    def test_other_client_cannot_read(self, gateway, actors):
        requirement = gateway.create_requirement(actors["client"], "hardware", None, {})
        with pytest.raises(NotAuthorized):
            gateway.get_requirement(actors["other_client"], requirement.id)

    def test_unknown_id(self, gateway, actors):
        with pytest.raises(NotFound) as exc_info:
            gateway.get_requirement(actors["ae"], 4242)
        assert exc_info.value.entity_id == 4242

    def test_available_actions_follow_status(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)

        assert gateway.available_actions(actors["client"], requirement.id) == [
            Event.GOOD_TO_GO, Event.REQUEST_CALL,
        ]
        assert gateway.available_actions(actors["ae"], requirement.id) == []


# ============= CLIENT ACTION =============

class TestClientAction:

    def test_good_to_go(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        updated = gateway.client_action(actors["client"], requirement.id, "good_to_go")
        assert updated.status == S.CLIENT_GOOD_TO_GO

    def test_request_call(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        updated = gateway.client_action(actors["client"], requirement.id, "request_call")
        assert updated.status == S.AE_CALL_REQUESTED

    def test_before_estimate_is_invalid(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.PENDING_AE_ESTIMATE)
        with pytest.raises(InvalidTransition):
            gateway.client_action(actors["client"], requirement.id, "good_to_go")
        assert gateway.get_requirement(actors["client"], requirement.id).status == S.PENDING_AE_ESTIMATE

    def test_deciding_twice_is_invalid(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AE_CALL_REQUESTED)
        with pytest.raises(InvalidState):
            gateway.client_action(actors["client"], requirement.id, "good_to_go")

    def test_only_owner_decides(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        with pytest.raises(NotAuthorized):
            gateway.client_action(actors["other_client"], requirement.id, "good_to_go")

    def test_ae_cannot_decide(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        with pytest.raises(NotAuthorized):
            gateway.client_action(actors["ae"], requirement.id, "good_to_go")

    def test_unknown_action(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        with pytest.raises(ValidationError):
            gateway.client_action(actors["client"], requirement.id, "cancel")

    def test_unknown_requirement(self, gateway, actors):
        with pytest.raises(NotFound):
            gateway.client_action(actors["client"], 999, "good_to_go")


# ============= ARCHIVE =============

class TestArchiveRequirement:

    def test_archive_cascades_and_hides(self, gateway, actors, requirement_in, db_session):
        requirement, po = requirement_in(S.PENDING_VERIFICATION)

        archived = gateway.archive_requirement(actors["admin"], requirement.id)

        assert archived.archived_at is not None
        assert archived.status == S.PENDING_VERIFICATION
        assert db_session.query(Estimate).filter(Estimate.archived_at.is_(None)).count() == 0
        assert db_session.query(PurchaseOrder).filter(PurchaseOrder.archived_at.is_(None)).count() == 0
        assert gateway.list_requirements(actors["client"]) == []
        assert gateway.list_pending_pos(actors["verifier"]) == []
        assert [r.id for r in gateway.list_requirements(actors["admin"], include_archived=True)] == [requirement.id]

    def test_archived_requirement_cannot_transition(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AWAITING_CLIENT_DECISION)
        gateway.archive_requirement(actors["admin"], requirement.id)
        with pytest.raises(NotFound):
            gateway.client_action(actors["client"], requirement.id, "good_to_go")

    def test_archive_twice_is_invalid(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.PENDING_AE_ESTIMATE)
        gateway.archive_requirement(actors["admin"], requirement.id)
        with pytest.raises(InvalidState):
            gateway.archive_requirement(actors["admin"], requirement.id)

    @pytest.mark.parametrize("role", ["client", "ae", "verifier"])
    def test_only_admin_archives(self, gateway, actors, requirement_in, role):
        requirement, _ = requirement_in(S.PENDING_AE_ESTIMATE)
        with pytest.raises(NotAuthorized):
            gateway.archive_requirement(actors[role], requirement.id)
