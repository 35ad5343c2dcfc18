"""SQLAlchemy Core table metadata for register persistence.

The Alembic migrations under `alembic/versions` create these tables; this
module mirrors them so db-layer services can build typed statements.
"""

import sqlalchemy as sa

DB_AMOUNT_TYPE = sa.Numeric(20, 6)
DB_TOTAL_TYPE = sa.Numeric(28, 6)
DB_ID_TYPE = sa.String(36)

metadata = sa.MetaData()

entity_table = sa.Table(
    "entity",
    metadata,
    sa.Column("entity_id", DB_ID_TYPE, primary_key=True),
    sa.Column("name", sa.Text(), nullable=False),
    sa.Column("country", sa.Text(), nullable=True),
    sa.Column("default_currency_code", sa.String(3), nullable=True),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
)

security_class_table = sa.Table(
    "security_class",
    metadata,
    sa.Column("security_class_id", DB_ID_TYPE, primary_key=True),
    sa.Column("entity_id", DB_ID_TYPE, sa.ForeignKey("entity.entity_id"), nullable=False),
    sa.Column("name", sa.Text(), nullable=False),
    sa.Column("symbol", sa.Text(), nullable=True),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("voting_rights", sa.Boolean(), nullable=False),
    sa.Column("dividend_rights", sa.Boolean(), nullable=False),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("is_archived", sa.Boolean(), nullable=False),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("entity_id", "name", name="uq_security_class_entity_name"),
)

member_table = sa.Table(
    "member",
    metadata,
    sa.Column("member_id", DB_ID_TYPE, primary_key=True),
    sa.Column("entity_id", DB_ID_TYPE, sa.ForeignKey("entity.entity_id"), nullable=False),
    sa.Column("member_type", sa.Text(), nullable=False),
    sa.Column("display_name", sa.Text(), nullable=False),
    sa.Column("member_number", sa.Text(), nullable=True),
    sa.Column("country", sa.Text(), nullable=True),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("entity_id", "member_number", name="uq_member_entity_member_number"),
)

transaction_table = sa.Table(
    "security_transaction",
    metadata,
    sa.Column("transaction_id", DB_ID_TYPE, primary_key=True),
    sa.Column("entity_id", DB_ID_TYPE, sa.ForeignKey("entity.entity_id"), nullable=False),
    sa.Column("security_class_id", DB_ID_TYPE, sa.ForeignKey("security_class.security_class_id"), nullable=False),
    sa.Column("transaction_type", sa.Text(), nullable=False),
    sa.Column("reason_code", sa.Text(), nullable=True),
    sa.Column("quantity", sa.BigInteger(), nullable=False),
    sa.Column("amount_paid_per_security", DB_AMOUNT_TYPE, nullable=True),
    sa.Column("amount_unpaid_per_security", DB_AMOUNT_TYPE, nullable=True),
    sa.Column("transfer_price_per_security", DB_AMOUNT_TYPE, nullable=True),
    sa.Column("currency_code", sa.String(3), nullable=False),
    sa.Column("total_amount_paid", DB_TOTAL_TYPE, nullable=True),
    sa.Column("total_amount_unpaid", DB_TOTAL_TYPE, nullable=True),
    sa.Column("total_transfer_amount", DB_TOTAL_TYPE, nullable=True),
    sa.Column("from_member_id", DB_ID_TYPE, sa.ForeignKey("member.member_id"), nullable=True),
    sa.Column("to_member_id", DB_ID_TYPE, sa.ForeignKey("member.member_id"), nullable=True),
    sa.Column("tranche_number", sa.Text(), nullable=True),
    sa.Column("tranche_sequence", sa.Integer(), nullable=True),
    sa.Column("posted_date", sa.Date(), nullable=False),
    sa.Column("settlement_date", sa.Date(), nullable=True),
    sa.Column("status", sa.Text(), nullable=False),
    sa.Column("reference", sa.Text(), nullable=True),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("certificate_number", sa.Text(), nullable=True),
    sa.Column("created_by", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False),
)

audit_log_table = sa.Table(
    "audit_log",
    metadata,
    sa.Column(
        "audit_log_id",
        sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    ),
    sa.Column("entity_id", DB_ID_TYPE, nullable=False),
    sa.Column("actor_id", sa.Text(), nullable=False),
    sa.Column("action", sa.Text(), nullable=False),
    sa.Column("table_name", sa.Text(), nullable=False),
    sa.Column("record_id", sa.Text(), nullable=False),
    sa.Column("field_name", sa.Text(), nullable=True),
    sa.Column("old_value", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("new_value", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("event_metadata", sa.JSON(none_as_null=True), nullable=True),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
)

__all__ = [
    "metadata",
    "entity_table",
    "security_class_table",
    "member_table",
    "transaction_table",
    "audit_log_table",
]
