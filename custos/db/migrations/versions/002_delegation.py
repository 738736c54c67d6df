"""Create delegation graph tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Tables: delegation_edges, internal_access_grants
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create delegation graph tables."""
    # target_id points at an end-client or a collaborator depending on kind
    op.create_table(
        "delegation_edges",
        sa.Column("seq", sa.BigInteger, sa.Identity(), nullable=False, unique=True),
        sa.Column("id", UUID, primary_key=True),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column(
            "company_id",
            UUID,
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "source_id",
            UUID,
            sa.ForeignKey("actors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("target_id", UUID, nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.UniqueConstraint(
            "kind", "company_id", "source_id", "target_id", name="uq_delegation_edges_key"
        ),
        sa.CheckConstraint(
            "kind IN ('supervisor_to_end_client', 'collaborator_to_end_client', "
            "'supervisor_to_collaborator')",
            name="chk_delegation_edges_kind",
        ),
        sa.CheckConstraint(
            "kind <> 'supervisor_to_collaborator' OR source_id <> target_id",
            name="chk_delegation_edges_no_self_supervision",
        ),
    )
    op.create_index("idx_delegation_edges_source", "delegation_edges", ["source_id", "kind"])
    op.create_index("idx_delegation_edges_target", "delegation_edges", ["target_id", "kind"])
    op.create_index("idx_delegation_edges_company", "delegation_edges", ["company_id"])

    op.create_table(
        "internal_access_grants",
        sa.Column("seq", sa.BigInteger, sa.Identity(), nullable=False, unique=True),
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "staff_id",
            UUID,
            sa.ForeignKey("actors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "company_id",
            UUID,
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.UniqueConstraint("staff_id", "company_id", name="uq_internal_access_grants"),
    )
    op.create_index("idx_internal_access_grants_company", "internal_access_grants", ["company_id"])


def downgrade() -> None:
    """Drop delegation graph tables."""
    op.drop_table("internal_access_grants")
    op.drop_table("delegation_edges")
