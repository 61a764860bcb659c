"""
SQLAlchemy ORM models for SaaSOTY.

Requirement is the aggregate root; Estimate and PurchaseOrder rows always
hang off a requirement and are only ever archived together with it.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Numeric,
    ForeignKey, Enum, JSON, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from saasoty.core.rbac import Role
from saasoty.db.session import Base


# ============= ENUMS =============

class RequirementType(str, enum.Enum):
    HARDWARE = "hardware"
    SOFTWARE = "software"


class SoftwareSubtype(str, enum.Enum):
    NEW = "new"
    RENEWAL = "renewal"
    UPGRADE = "upgrade"


class RequirementStatus(str, enum.Enum):
    DRAFT = "draft"  # conceptual initial state, never persisted
    PENDING_AE_ESTIMATE = "pending_ae_estimate"
    AWAITING_CLIENT_DECISION = "awaiting_client_decision"
    CLIENT_GOOD_TO_GO = "client_good_to_go"
    AE_CALL_REQUESTED = "ae_call_requested"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"


class POStatus(str, enum.Enum):
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Stored as plain strings (values, not names) so the schema is portable
# between SQLite and Postgres.
def enum_values(enum_cls):
    return [e.value for e in enum_cls]


def _enum_type(enum_cls, name):
    return Enum(
        enum_cls,
        name=name,
        values_callable=enum_values,
        native_enum=False,
        validate_strings=True,
        length=32,
    )


RoleType = _enum_type(Role, "userrole")
RequirementTypeType = _enum_type(RequirementType, "requirementtype")
SoftwareSubtypeType = _enum_type(SoftwareSubtype, "softwaresubtype")
RequirementStatusType = _enum_type(RequirementStatus, "requirementstatus")
POStatusType = _enum_type(POStatus, "postatus")


# ============= AUTH =============

class User(Base):
    """User accounts. Password is optional for impersonation-only demo users."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    role = Column(RoleType, nullable=False, default=Role.CLIENT)
    hashed_password = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login = Column(DateTime(timezone=True))

    # Relationships
    requirements = relationship("Requirement", back_populates="owner")
    audit_logs = relationship("AuditLog", back_populates="user")


# ============= AUDIT LOG =============

class AuditLog(Base):
    """Audit trail of every committed workflow transition."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(100), index=True)
    entity_id = Column(Integer)
    details = Column(JSON)
    ip_address = Column(String(50))

    # Relationships
    user = relationship("User", back_populates="audit_logs")

    __table_args__ = (
        Index('ix_audit_logs_entity', 'entity_type', 'entity_id'),
    )


# ============= PROCUREMENT WORKFLOW =============

class Requirement(Base):
    """A client's hardware or software procurement request."""
    __tablename__ = "requirements"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(RequirementTypeType, nullable=False)
    subtype = Column(SoftwareSubtypeType, nullable=True)  # set iff type=software
    details = Column(JSON, default=dict)  # name, quantity, expected_* dates
    status = Column(RequirementStatusType, nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    archived_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="requirements")
    estimates = relationship(
        "Estimate", back_populates="requirement", order_by="Estimate.id"
    )
    purchase_orders = relationship(
        "PurchaseOrder", back_populates="requirement", order_by="PurchaseOrder.id"
    )

    __mapper_args__ = {"version_id_col": version}


class Estimate(Base):
    """AE-authored cost estimate for a requirement."""
    __tablename__ = "estimates"

    id = Column(Integer, primary_key=True, index=True)
    requirement_id = Column(Integer, ForeignKey("requirements.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    breakdown = Column(JSON, default=list)  # [{"label": str, "amount": "12.34"}]
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    archived_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    requirement = relationship("Requirement", back_populates="estimates")
    author = relationship("User")


class PurchaseOrder(Base):
    """Client-submitted PO awaiting verifier review."""
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    requirement_id = Column(Integer, ForeignKey("requirements.id"), nullable=False, index=True)
    po_number = Column(String(100), nullable=False)
    status = Column(POStatusType, nullable=False, default=POStatus.PENDING_VERIFICATION, index=True)
    submitted_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    decision_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    requirement = relationship("Requirement", back_populates="purchase_orders")

    __table_args__ = (
        UniqueConstraint('requirement_id', 'po_number', name='uq_po_requirement_number'),
    )
