"""Add password reset token columns to users.

Revision ID: 0003_password_reset
Revises: 0002_document_counters
Create Date: 2026-10-19 15:30:00.000000+00:00
"""

from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "0003_password_reset"
down_revision: Union[str, None] = "0002_document_counters"
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("reset_token_hash", sa.String(64), nullable=True))
        batch_op.add_column(
            sa.Column("reset_token_expires_at", sa.DateTime(timezone=True), nullable=True)
        )


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("reset_token_expires_at")
        batch_op.drop_column("reset_token_hash")
