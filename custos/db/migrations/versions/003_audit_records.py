"""Create audit_records table.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

Tables: audit_records
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSON, UUID

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create audit_records table."""
    # No foreign keys: records outlive the actors and companies they name
    op.create_table(
        "audit_records",
        sa.Column("seq", sa.BigInteger, sa.Identity(), nullable=False, unique=True),
        sa.Column("id", UUID, primary_key=True),
        sa.Column("company_id", UUID),
        sa.Column("actor_id", UUID),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("entity_name", sa.String(255), nullable=False),
        sa.Column("entity_id", UUID, nullable=False),
        sa.Column("prior_state", JSON),
        sa.Column("new_state", JSON),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.CheckConstraint(
            "action IN ('created', 'updated', 'deleted')",
            name="chk_audit_records_action",
        ),
    )
    op.create_index(
        "idx_audit_records_entity",
        "audit_records",
        ["entity_name", "entity_id", sa.text("created_at DESC")],
    )
    op.create_index(
        "idx_audit_records_actor",
        "audit_records",
        ["actor_id", sa.text("created_at DESC")],
        postgresql_where=sa.text("actor_id IS NOT NULL"),
    )
    op.create_index(
        "idx_audit_records_company",
        "audit_records",
        ["company_id", sa.text("created_at DESC")],
        postgresql_where=sa.text("company_id IS NOT NULL"),
    )
    op.create_index(
        "idx_audit_records_created",
        "audit_records",
        [sa.text("created_at DESC"), sa.text("seq DESC")],
    )


def downgrade() -> None:
    """Drop audit_records table."""
    op.drop_table("audit_records")
