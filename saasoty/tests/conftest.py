"""
Shared fixtures: an isolated SQLite database per test, users for every
role, and helpers to walk a requirement through the workflow.
"""
import os

# Settings are read at import time; pin a test configuration first.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOW_IMPERSONATION", "true")
os.environ.setdefault("SEED_DEMO", "true")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from saasoty.core.rbac import Actor, Role
from saasoty.core.security import create_access_token
from saasoty.db.session import Base
from saasoty.db.models import RequirementStatus, User
from saasoty.services.gateway import WorkflowGateway


# ============= DATABASE =============

@pytest.fixture
def engine():
    """Fresh in-memory database shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def gateway(db_session: Session) -> WorkflowGateway:
    return WorkflowGateway(db_session)


# ============= ACTORS =============

def make_actor(db: Session, role: Role, email: str) -> Actor:
    user = User(email=email, name=email.split("@")[0], role=role, is_active=True)
    db.add(user)
    db.commit()
    return Actor(id=user.id, role=role, email=user.email, name=user.name)


@pytest.fixture
def client_actor(db_session: Session) -> Actor:
    return make_actor(db_session, Role.CLIENT, "client@acme.com")


@pytest.fixture
def other_client(db_session: Session) -> Actor:
    return make_actor(db_session, Role.CLIENT, "other-client@acme.com")


@pytest.fixture
def ae_actor(db_session: Session) -> Actor:
    return make_actor(db_session, Role.AE, "ae@acme.com")


@pytest.fixture
def verifier_actor(db_session: Session) -> Actor:
    return make_actor(db_session, Role.VERIFIER, "verifier@acme.com")


@pytest.fixture
def admin_actor(db_session: Session) -> Actor:
    return make_actor(db_session, Role.ADMIN, "admin@acme.com")


@pytest.fixture
def actors(client_actor, other_client, ae_actor, verifier_actor, admin_actor) -> dict:
    return {
        "client": client_actor,
        "other_client": other_client,
        "ae": ae_actor,
        "verifier": verifier_actor,
        "admin": admin_actor,
    }


def auth_headers(actor: Actor) -> dict:
    token = create_access_token({
        "sub": str(actor.id),
        "role": actor.role.value,
        "email": actor.email,
        "name": actor.name,
    })
    return {"Authorization": f"Bearer {token}"}


# ============= WORKFLOW HELPERS =============

HARDWARE_DETAILS = {
    "name": "Developer laptops",
    "quantity": 3,
    "expected_delivery_date": "2026-12-01",
    "expected_order_confirmation_date": "2026-11-15",
}


def advance(gateway: WorkflowGateway, actors: dict, target: RequirementStatus):
    """Create a hardware requirement and drive it to ``target``. Returns (requirement, po)."""
    client, ae, verifier = actors["client"], actors["ae"], actors["verifier"]
    requirement = gateway.create_requirement(client, "hardware", None, dict(HARDWARE_DETAILS))
    po = None

    if target == RequirementStatus.PENDING_AE_ESTIMATE:
        return requirement, po
    gateway.submit_estimate(ae, requirement.id, 999, "USD", [{"label": "Item", "amount": 999}], "Auto-estimate")

    if target == RequirementStatus.AWAITING_CLIENT_DECISION:
        return requirement, po
    if target == RequirementStatus.AE_CALL_REQUESTED:
        return gateway.client_action(client, requirement.id, "request_call"), po
    gateway.client_action(client, requirement.id, "good_to_go")

    if target == RequirementStatus.CLIENT_GOOD_TO_GO:
        return requirement, po
    po = gateway.submit_po(client, requirement.id, f"PO-{requirement.id}")

    if target == RequirementStatus.PENDING_VERIFICATION:
        return requirement, po
    decision = "rejected" if target == RequirementStatus.REJECTED else "verified"
    po = gateway.review_po(verifier, po.id, decision)
    return requirement, po


@pytest.fixture
def requirement_in(gateway, actors):
    """``requirement_in(status)`` -> (requirement, po) already in that status."""
    def _make(target: RequirementStatus):
        return advance(gateway, actors, target)
    return _make
