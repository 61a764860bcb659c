"""initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Creates users, audit log and the procurement workflow tables.
Enum columns are stored as VARCHAR (non-native enums) so the same
migration runs on SQLite and Postgres.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(255)),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(timezone=True)),
    )

    # Audit Logs
    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(100), index=True),
        sa.Column('entity_id', sa.Integer()),
        sa.Column('details', sa.JSON()),
        sa.Column('ip_address', sa.String(50)),
    )
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])

    # Requirements
    op.create_table('requirements',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('subtype', sa.String(32), nullable=True),
        sa.Column('details', sa.JSON()),
        sa.Column('status', sa.String(32), nullable=False, index=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
    )

    # Estimates
    op.create_table('estimates',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('requirement_id', sa.Integer(), sa.ForeignKey('requirements.id'), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('breakdown', sa.JSON()),
        sa.Column('notes', sa.Text()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Purchase Orders
    op.create_table('purchase_orders',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('requirement_id', sa.Integer(), sa.ForeignKey('requirements.id'), nullable=False, index=True),
        sa.Column('po_number', sa.String(100), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, index=True),
        sa.Column('submitted_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('decision_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('requirement_id', 'po_number', name='uq_po_requirement_number'),
    )


def downgrade() -> None:
    op.drop_table('purchase_orders')
    op.drop_table('estimates')
    op.drop_table('requirements')
    op.drop_index('ix_audit_logs_entity', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('users')
