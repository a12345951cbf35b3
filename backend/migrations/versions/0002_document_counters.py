"""Add document_counters for transaction, receipt and invoice numbering.

Revision ID: 0002_document_counters
Revises: 0001_initial
Create Date: 2026-10-19 14:00:00.000000+00:00
"""

from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "0002_document_counters"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def upgrade() -> None:
    # Existing rows need no backfill: a missing counter starts after the
    # highest number already stored for its prefix and year.
    op.create_table(
        "document_counters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("prefix", sa.String(10), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("current_value", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.UniqueConstraint(
            "business_id", "prefix", "year", name="uq_document_counters_scope"
        ),
    )


def downgrade() -> None:
    op.drop_table("document_counters")
