"""Create payment settings, payment records and audit tables

Revision ID: 20260301_000001
Revises: None
Create Date: 2026-03-01

payment_records.transaction_reference is unique: one on-chain transaction
can back at most one entitlement.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20260301_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "payment_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("wallet_address", sa.String(44), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("production_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("minimum_confirmations", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", name="uq_payment_settings_tenant_id"),
    )
    op.create_index("ix_payment_settings_tenant_id", "payment_settings", ["tenant_id"])

    op.create_table(
        "payment_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("payer_id", sa.String(64), nullable=False),
        sa.Column("content_id", sa.String(64), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=True),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("transaction_reference", sa.String(88), nullable=False),
        sa.Column("sender_address", sa.String(44), nullable=False),
        sa.Column("recipient_address", sa.String(44), nullable=False),
        sa.Column("amount", sa.Numeric(precision=20, scale=9), nullable=True),
        sa.Column("ledger_slot", sa.BigInteger(), nullable=True),
        sa.Column("ledger_timestamp", sa.DateTime(), nullable=True),
        sa.Column("confirmations", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", "FAILED", name="payment_status", create_constraint=True),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("failure_reason", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_reference", name="uq_payment_records_transaction_reference"),
    )
    op.create_index("ix_payment_records_transaction_reference", "payment_records", ["transaction_reference"])
    op.create_index("ix_payment_records_payer_id", "payment_records", ["payer_id"])
    op.create_index("ix_payment_records_content_id", "payment_records", ["content_id"])
    op.create_index("ix_payment_records_tenant_id", "payment_records", ["tenant_id"])
    op.create_index("ix_payment_records_status", "payment_records", ["status"])
    op.create_index("ix_payment_records_payer_content", "payment_records", ["payer_id", "content_id"])

    op.create_table(
        "payment_audit_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("payer_id", sa.String(64), nullable=False),
        sa.Column("content_id", sa.String(64), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=True),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("transaction_reference", sa.String(88), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.String(50), nullable=True),
        sa.Column("is_fraud_attempt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payment_audit_entries_payer_id", "payment_audit_entries", ["payer_id"])
    op.create_index("ix_payment_audit_entries_tenant_id", "payment_audit_entries", ["tenant_id"])
    op.create_index(
        "ix_payment_audit_entries_transaction_reference", "payment_audit_entries", ["transaction_reference"]
    )


def downgrade() -> None:
    op.drop_index("ix_payment_audit_entries_transaction_reference", table_name="payment_audit_entries")
    op.drop_index("ix_payment_audit_entries_tenant_id", table_name="payment_audit_entries")
    op.drop_index("ix_payment_audit_entries_payer_id", table_name="payment_audit_entries")
    op.drop_table("payment_audit_entries")

    op.drop_index("ix_payment_records_payer_content", table_name="payment_records")
    op.drop_index("ix_payment_records_status", table_name="payment_records")
    op.drop_index("ix_payment_records_tenant_id", table_name="payment_records")
    op.drop_index("ix_payment_records_content_id", table_name="payment_records")
    op.drop_index("ix_payment_records_payer_id", table_name="payment_records")
    op.drop_index("ix_payment_records_transaction_reference", table_name="payment_records")
    op.drop_table("payment_records")

    op.drop_index("ix_payment_settings_tenant_id", table_name="payment_settings")
    op.drop_table("payment_settings")
