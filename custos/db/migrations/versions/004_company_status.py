"""Add companies.status.

Revision ID: 004
Revises: 003
Create Date: 2026-10-20
"""

import sqlalchemy as sa
from alembic import op

revision = "004"
down_revision = "003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "companies",
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
    )
    op.create_check_constraint(
        "chk_companies_status",
        "companies",
        "status IN ('active', 'inactive', 'onboarding', 'suspended')",
    )


def downgrade() -> None:
    op.drop_constraint("chk_companies_status", "companies", type_="check")
    op.drop_column("companies", "status")
