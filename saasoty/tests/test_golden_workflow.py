"""
Tests for the golden procurement workflow end to end.

Tests:
1. Client creates a hardware requirement
2. AE sends a 999 USD estimate
3. Client says good to go and submits PO-1
4. Verifier verifies the PO
5. Audit trail records every step, each one a legal edge
"""
from decimal import Decimal

from saasoty.db.models import AuditLog, POStatus, RequirementStatus as S
from saasoty.services.lifecycle import is_edge

from conftest import HARDWARE_DETAILS


class TestGoldenWorkflow:

    def test_happy_path(self, gateway, actors, db_session):
        client, ae, verifier = actors["client"], actors["ae"], actors["verifier"]

        requirement = gateway.create_requirement(client, "hardware", None, dict(HARDWARE_DETAILS))
        assert requirement.status == S.PENDING_AE_ESTIMATE

        estimate = gateway.submit_estimate(
            ae, requirement.id, 999, "USD", [{"label": "Item", "amount": 999}], "Auto-estimate"
        )
        assert estimate.amount == Decimal("999.00")

        assert gateway.client_action(client, requirement.id, "good_to_go").status == S.CLIENT_GOOD_TO_GO

        po = gateway.submit_po(client, requirement.id, "PO-1")
        assert po.status == POStatus.PENDING_VERIFICATION

        po = gateway.review_po(verifier, po.id, "verified")
        assert po.status == POStatus.VERIFIED

        final = gateway.get_requirement(client, requirement.id)
        assert final.status == S.VERIFIED
        # create plus four transitions
        assert final.version == 5

        trail = db_session.query(AuditLog).order_by(AuditLog.id).all()
        assert [e.action for e in trail] == [
            "create_requirement",
            "send_estimate",
            "client_good_to_go",
            "submit_po",
            "review_po_verified",
        ]
        assert [e.user_id for e in trail] == [client.id, ae.id, client.id, client.id, verifier.id]
        for entry in trail:
            assert is_edge(entry.details["from_status"], entry.details["to_status"])

    def test_call_requested_branch_stops(self, gateway, actors, requirement_in):
        requirement, _ = requirement_in(S.AE_CALL_REQUESTED)

        assert requirement.status == S.AE_CALL_REQUESTED
        for role in ("client", "ae", "admin"):
            assert gateway.available_actions(actors[role], requirement.id) == []
