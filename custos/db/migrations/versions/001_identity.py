"""Create identity tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tables: companies, end_clients, actors
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create identity tables."""
    op.create_table(
        "companies",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
    )

    op.create_table(
        "end_clients",
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "company_id",
            UUID,
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("idx_end_clients_company", "end_clients", ["company_id"])

    op.create_table(
        "actors",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("universe", sa.String(20), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "company_id",
            UUID,
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
        ),
        sa.Column("display_name", sa.String(255)),
        sa.Column("email", sa.String(255)),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint(
            "(universe = 'company' AND company_id IS NOT NULL) "
            "OR (universe = 'internal' AND company_id IS NULL)",
            name="chk_actors_universe_company",
        ),
        sa.CheckConstraint(
            "(universe = 'company' AND role IN ('owner', 'supervisor', 'collaborator')) "
            "OR (universe = 'internal' AND role IN ('admin', 'support', 'developer'))",
            name="chk_actors_universe_role",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')",
            name="chk_actors_status",
        ),
    )
    op.create_index(
        "idx_actors_company",
        "actors",
        ["company_id"],
        postgresql_where=sa.text("company_id IS NOT NULL"),
    )


def downgrade() -> None:
    """Drop identity tables."""
    op.drop_table("actors")
    op.drop_table("end_clients")
    op.drop_table("companies")
