"""Tests for audit log pagination and CSV export."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import Engine

from securities_register.audit import AUDIT_CSV_HEADER, AuditLogService
from securities_register.db import AuditLogFilters, AuditLogRecord, SQLAlchemyAuditLogStore
from securities_register.ledger import TransactionCreateRequest, TransactionLedgerService

from conftest import RegisterSeed

_BASE_TIME = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _audit_record(audit_log_id: int, **overrides) -> AuditLogRecord:
    values = {
        "audit_log_id": audit_log_id,
        "entity_id": "entity-1",
        "actor_id": "user-1",
        "action": "UPDATE",
        "table_name": "Transaction",
        "record_id": "txn-1",
        "field_name": "quantity",
        "old_value": 100,
        "new_value": 200,
        "event_metadata": None,
        "created_at_utc": _BASE_TIME - timedelta(minutes=audit_log_id),
    }
    values.update(overrides)
    return AuditLogRecord(**values)


class _AuditRepositoryStub:
    """Audit read repository stub over an in-memory row list."""

    def __init__(self, records: list[AuditLogRecord]) -> None:
        self._records = records
        self.list_calls: list[tuple[int, int]] = []

    def db_audit_log_list(self, filters: AuditLogFilters, limit: int, offset: int) -> list[AuditLogRecord]:
        _ = filters
        self.list_calls.append((limit, offset))
        return self._records[offset : offset + limit]

    def db_audit_log_count(self, filters: AuditLogFilters) -> int:
        _ = filters
        return len(self._records)

    def db_audit_log_iter(self, filters: AuditLogFilters):
        _ = filters
        return iter(self._records)


def test_query_reports_pagination_metadata() -> None:
    """Report total and has_more for partial and final pages."""

    repository = _AuditRepositoryStub([_audit_record(index) for index in range(1, 6)])
    service = AuditLogService(repository=repository, default_limit=2, max_limit=3)

    first_page = service.audit_query(AuditLogFilters(entity_id="entity-1"))
    last_page = service.audit_query(AuditLogFilters(entity_id="entity-1"), limit=3, offset=3)

    assert [entry.audit_log_id for entry in first_page.entries] == [1, 2]
    assert first_page.total == 5
    assert first_page.has_more is True
    assert [entry.audit_log_id for entry in last_page.entries] == [4, 5]
    assert last_page.has_more is False


def test_query_clamps_limit_and_rejects_invalid_paging() -> None:
    repository = _AuditRepositoryStub([_audit_record(1)])
    service = AuditLogService(repository=repository, default_limit=2, max_limit=3)

    result = service.audit_query(AuditLogFilters(entity_id="entity-1"), limit=500)

    assert result.limit == 3
    assert repository.list_calls == [(3, 0)]
    with pytest.raises(ValueError):
        service.audit_query(AuditLogFilters(entity_id="entity-1"), limit=0)
    with pytest.raises(ValueError):
        service.audit_query(AuditLogFilters(entity_id="entity-1"), offset=-1)


def test_export_csv_streams_header_then_one_line_per_row() -> None:
    """Render scalars as text and snapshots as compact JSON."""

    repository = _AuditRepositoryStub(
        [
            _audit_record(1, field_name="reference", old_value="R-1", new_value="R, 2"),
            _audit_record(2, action="DELETE", field_name=None, old_value={"quantity": 5, "id": "txn-1"}, new_value=None),
        ]
    )
    service = AuditLogService(repository=repository)

    chunks = list(service.audit_export_csv(AuditLogFilters(entity_id="entity-1")))
    rows = list(csv.reader(io.StringIO("".join(chunks))))

    assert len(chunks) == 3
    assert tuple(rows[0]) == AUDIT_CSV_HEADER
    assert rows[1] == [
        (_BASE_TIME - timedelta(minutes=1)).isoformat(),
        "user-1",
        "UPDATE",
        "Transaction",
        "txn-1",
        "reference",
        "R-1",
        "R, 2",
    ]
    assert rows[2][5] == ""
    assert rows[2][6] == '{"id":"txn-1","quantity":5}'
    assert rows[2][7] == ""


def test_service_rejects_inconsistent_limits() -> None:
    with pytest.raises(ValueError):
        AuditLogService(repository=_AuditRepositoryStub([]), default_limit=10, max_limit=5)


def test_store_filters_by_table_and_action(
    ledger_service: TransactionLedgerService,
    register_seed: RegisterSeed,
    register_engine: Engine,
) -> None:
    """Query real audit rows written by ledger mutations."""

    created = ledger_service.ledger_transaction_create(
        TransactionCreateRequest(
            entity_id=register_seed.entity.entity_id,
            security_class_id=register_seed.ordinary.security_class_id,
            transaction_type="ISSUE",
            quantity=50,
            to_member_id=register_seed.member_one.member_id,
            posted_date=date(2026, 3, 1),
        ),
        actor_id="user-1",
    )
    ledger_service.ledger_transaction_update(created.transaction_id, {"reference": "R-9"}, actor_id="user-2")

    service = AuditLogService(repository=SQLAlchemyAuditLogStore(engine=register_engine))
    entity_id = register_seed.entity.entity_id

    everything = service.audit_query(AuditLogFilters(entity_id=entity_id))
    updates = service.audit_query(AuditLogFilters(entity_id=entity_id, action="UPDATE"))
    by_actor = service.audit_query(AuditLogFilters(entity_id=entity_id, actor_id="user-1"))
    other_entity = service.audit_query(AuditLogFilters(entity_id="other-entity"))
    exported = list(service.audit_export_csv(AuditLogFilters(entity_id=entity_id, record_id=created.transaction_id)))

    assert everything.total == 2
    assert [entry.action for entry in everything.entries] == ["UPDATE", "CREATE"]
    assert updates.total == 1
    assert updates.entries[0].field_name == "reference"
    assert updates.entries[0].new_value == "R-9"
    assert [entry.action for entry in by_actor.entries] == ["CREATE"]
    assert other_entity.total == 0
    assert len(exported) == 3
