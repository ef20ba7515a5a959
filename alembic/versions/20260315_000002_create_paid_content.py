"""Create paid_content table

Revision ID: 20260315_000002
Revises: 20260301_000001
Create Date: 2026-03-15

One row per (tenant_id, content_id) with the price of the content.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20260315_000002"
down_revision: Union[str, None] = "20260301_000001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "paid_content",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("content_id", sa.String(64), nullable=False),
        sa.Column("requires_payment", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("payment_amount", sa.Numeric(precision=20, scale=9), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "content_id", name="uq_paid_content_tenant_content"),
    )
    op.create_index("ix_paid_content_tenant_id", "paid_content", ["tenant_id"])


def downgrade() -> None:
    op.drop_index("ix_paid_content_tenant_id", table_name="paid_content")
    op.drop_table("paid_content")
