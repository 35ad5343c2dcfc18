"""JSON serialization of ledger records for API responses.

Decimal amounts are rendered as strings so no precision is lost in transit.
"""

from decimal import Decimal

from securities_register.audit import AuditQueryResult
from securities_register.db import AuditLogRecord, TransactionRecord
from securities_register.ledger import RegisterOverview, SecurityClassSummary, TrancheSummary


def api_serialize_decimal(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def api_serialize_transaction_record(record: TransactionRecord) -> dict[str, object]:
    """Serialize typed transaction row to JSON response payload.

    Args:
        record: Typed transaction record.

    Returns:
        dict[str, object]: JSON-serializable transaction payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "transaction_id": record.transaction_id,
        "entity_id": record.entity_id,
        "security_class_id": record.security_class_id,
        "transaction_type": record.transaction_type,
        "reason_code": record.reason_code,
        "quantity": record.quantity,
        "amount_paid_per_security": api_serialize_decimal(record.amount_paid_per_security),
        "amount_unpaid_per_security": api_serialize_decimal(record.amount_unpaid_per_security),
        "transfer_price_per_security": api_serialize_decimal(record.transfer_price_per_security),
        "currency_code": record.currency_code,
        "total_amount_paid": api_serialize_decimal(record.total_amount_paid),
        "total_amount_unpaid": api_serialize_decimal(record.total_amount_unpaid),
        "total_transfer_amount": api_serialize_decimal(record.total_transfer_amount),
        "from_member_id": record.from_member_id,
        "to_member_id": record.to_member_id,
        "tranche_number": record.tranche_number,
        "tranche_sequence": record.tranche_sequence,
        "posted_date": record.posted_date.isoformat(),
        "settlement_date": record.settlement_date.isoformat() if record.settlement_date else None,
        "status": record.status,
        "reference": record.reference,
        "description": record.description,
        "certificate_number": record.certificate_number,
        "created_by": record.created_by,
        "created_at_utc": record.created_at_utc.isoformat(),
        "updated_at_utc": record.updated_at_utc.isoformat(),
    }


def api_serialize_tranche_summary(tranche: TrancheSummary) -> dict[str, object]:
    return {
        "tranche_number": tranche.tranche_number,
        "first_transaction_id": tranche.first_transaction_id,
        "issue_date": tranche.issue_date.isoformat(),
        "quantity": tranche.quantity,
        "amount_paid_per_security": api_serialize_decimal(tranche.amount_paid_per_security),
        "amount_unpaid_per_security": api_serialize_decimal(tranche.amount_unpaid_per_security),
        "total_amount_paid": api_serialize_decimal(tranche.total_amount_paid),
        "total_amount_unpaid": api_serialize_decimal(tranche.total_amount_unpaid),
        "currency_code": tranche.currency_code,
        "reference": tranche.reference,
        "description": tranche.description,
        "allocation_count": tranche.allocation_count,
    }


def api_serialize_security_summary(summary: SecurityClassSummary) -> dict[str, object]:
    """Serialize one security class summary including its tranche groups."""

    return {
        "security_class_id": summary.security_class_id,
        "name": summary.name,
        "symbol": summary.symbol,
        "description": summary.description,
        "voting_rights": summary.voting_rights,
        "dividend_rights": summary.dividend_rights,
        "is_active": summary.is_active,
        "is_archived": summary.is_archived,
        "total_quantity": summary.total_quantity,
        "total_amount_paid": api_serialize_decimal(summary.total_amount_paid),
        "total_amount_unpaid": api_serialize_decimal(summary.total_amount_unpaid),
        "currency_code": summary.currency_code,
        "tranche_count": summary.tranche_count,
        "member_count": summary.member_count,
        "tranches": [api_serialize_tranche_summary(tranche) for tranche in summary.tranches],
    }


def api_serialize_register_overview(overview: RegisterOverview) -> dict[str, object]:
    return {
        "entity_id": overview.entity_id,
        "total_members": overview.total_members,
        "total_security_classes": overview.total_security_classes,
        "active_security_classes": overview.active_security_classes,
        "archived_security_classes": overview.archived_security_classes,
        "total_transactions": overview.total_transactions,
        "recent_transactions": [api_serialize_transaction_record(record) for record in overview.recent_transactions],
    }

def api_serialize_audit_record(record: AuditLogRecord) -> dict[str, object]:
    return {
        "audit_log_id": record.audit_log_id,
        "entity_id": record.entity_id,
        "actor_id": record.actor_id,
        "action": record.action,
        "table_name": record.table_name,
        "record_id": record.record_id,
        "field_name": record.field_name,
        "old_value": record.old_value,
        "new_value": record.new_value,
        "metadata": record.event_metadata,
        "created_at_utc": record.created_at_utc.isoformat(),
    }


def api_serialize_audit_query_result(result: AuditQueryResult) -> dict[str, object]:
    return {
        "items": [api_serialize_audit_record(record) for record in result.entries],
        "page": {
            "limit": result.limit,
            "offset": result.offset,
            "returned": len(result.entries),
            "total": result.total,
            "has_more": result.has_more,
        },
    }
