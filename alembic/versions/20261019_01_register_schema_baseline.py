"""Securities register schema baseline

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "entity",
        sa.Column("entity_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("country", sa.Text(), nullable=True),
        sa.Column("default_currency_code", sa.String(3), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "security_class",
        sa.Column("security_class_id", sa.String(36), primary_key=True),
        sa.Column("entity_id", sa.String(36), sa.ForeignKey("entity.entity_id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("symbol", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("voting_rights", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("dividend_rights", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("entity_id", "name", name="uq_security_class_entity_name"),
    )
    op.create_index("ix_security_class_entity_id", "security_class", ["entity_id"])

    op.create_table(
        "member",
        sa.Column("member_id", sa.String(36), primary_key=True),
        sa.Column("entity_id", sa.String(36), sa.ForeignKey("entity.entity_id"), nullable=False),
        sa.Column("member_type", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("member_number", sa.Text(), nullable=True),
        sa.Column("country", sa.Text(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("entity_id", "member_number", name="uq_member_entity_member_number"),
        sa.CheckConstraint(
            "member_type IN ('Individual', 'Joint', 'Organization')",
            name="ck_member_member_type",
        ),
    )
    op.create_index("ix_member_entity_id", "member", ["entity_id"])

    op.create_table(
        "security_transaction",
        sa.Column("transaction_id", sa.String(36), primary_key=True),
        sa.Column("entity_id", sa.String(36), sa.ForeignKey("entity.entity_id"), nullable=False),
        sa.Column(
            "security_class_id",
            sa.String(36),
            sa.ForeignKey("security_class.security_class_id"),
            nullable=False,
        ),
        sa.Column("transaction_type", sa.Text(), nullable=False),
        sa.Column("reason_code", sa.Text(), nullable=True),
        sa.Column("quantity", sa.BigInteger(), nullable=False),
        sa.Column("amount_paid_per_security", sa.Numeric(20, 6), nullable=True),
        sa.Column("amount_unpaid_per_security", sa.Numeric(20, 6), nullable=True),
        sa.Column("transfer_price_per_security", sa.Numeric(20, 6), nullable=True),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("total_amount_paid", sa.Numeric(28, 6), nullable=True),
        sa.Column("total_amount_unpaid", sa.Numeric(28, 6), nullable=True),
        sa.Column("total_transfer_amount", sa.Numeric(28, 6), nullable=True),
        sa.Column("from_member_id", sa.String(36), sa.ForeignKey("member.member_id"), nullable=True),
        sa.Column("to_member_id", sa.String(36), sa.ForeignKey("member.member_id"), nullable=True),
        sa.Column("tranche_number", sa.Text(), nullable=True),
        sa.Column("tranche_sequence", sa.Integer(), nullable=True),
        sa.Column("posted_date", sa.Date(), nullable=False),
        sa.Column("settlement_date", sa.Date(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'Completed'")),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("certificate_number", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity >= 0", name="ck_security_transaction_quantity_non_negative"),
        sa.CheckConstraint(
            "transaction_type IN ('ISSUE', 'TRANSFER', 'CANCELLATION', 'REDEMPTION', "
            "'RETURN_OF_CAPITAL', 'CAPITAL_CALL')",
            name="ck_security_transaction_type",
        ),
        sa.CheckConstraint(
            "status IN ('Completed', 'Pending', 'Reversed')",
            name="ck_security_transaction_status",
        ),
    )
    op.create_index(
        "ix_security_transaction_class_status_posted",
        "security_transaction",
        ["security_class_id", "status", "posted_date"],
    )
    op.create_index("ix_security_transaction_entity_id", "security_transaction", ["entity_id"])
    op.create_index("ix_security_transaction_from_member_id", "security_transaction", ["from_member_id"])
    op.create_index("ix_security_transaction_to_member_id", "security_transaction", ["to_member_id"])

    op.create_table(
        "audit_log",
        sa.Column(
            "audit_log_id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("actor_id", sa.Text(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("table_name", sa.Text(), nullable=False),
        sa.Column("record_id", sa.Text(), nullable=False),
        sa.Column("field_name", sa.Text(), nullable=True),
        sa.Column("old_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=True),
        sa.Column("event_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "action IN ('CREATE', 'UPDATE', 'DELETE', 'ARCHIVE', 'UNARCHIVE')",
            name="ck_audit_log_action",
        ),
    )
    op.create_index("ix_audit_log_entity_created", "audit_log", ["entity_id", "created_at_utc"])
    op.create_index("ix_audit_log_record", "audit_log", ["table_name", "record_id"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_audit_log_record", table_name="audit_log")
    op.drop_index("ix_audit_log_entity_created", table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_index("ix_security_transaction_to_member_id", table_name="security_transaction")
    op.drop_index("ix_security_transaction_from_member_id", table_name="security_transaction")
    op.drop_index("ix_security_transaction_entity_id", table_name="security_transaction")
    op.drop_index("ix_security_transaction_class_status_posted", table_name="security_transaction")
    op.drop_table("security_transaction")

    op.drop_index("ix_member_entity_id", table_name="member")
    op.drop_table("member")

    op.drop_index("ix_security_class_entity_id", table_name="security_class")
    op.drop_table("security_class")

    op.drop_table("entity")
