"""Tests for the audit log API in JSON and CSV formats."""

from __future__ import annotations

import csv
import io

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine

from securities_register.api import create_api_application
from securities_register.audit import AUDIT_CSV_HEADER, AuditLogService
from securities_register.config import AppSettings
from securities_register.db import SQLAlchemyAuditLogStore, SQLAlchemyDatabaseHealthService
from securities_register.ledger import RegistryService, TransactionLedgerService

from conftest import RegisterSeed

_ACTOR_HEADERS = {"X-Actor-Id": "user-42"}


@pytest.fixture
def api_client(
    migrated_database_url: str,
    register_engine: Engine,
    ledger_service: TransactionLedgerService,
    registry_service: RegistryService,
) -> TestClient:
    settings = AppSettings(environment_name="test", database_url=migrated_database_url)
    application = create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=register_engine),
        ledger_service=ledger_service,
        registry_service=registry_service,
        audit_service=AuditLogService(repository=SQLAlchemyAuditLogStore(engine=register_engine), default_limit=2),
    )
    return TestClient(application)


@pytest.fixture
def audited_transaction_id(api_client: TestClient, register_seed: RegisterSeed) -> str:
    """Create one transaction and correct two of its fields."""

    created = api_client.post(
        "/transactions",
        json={
            "entity_id": register_seed.entity.entity_id,
            "security_class_id": register_seed.ordinary.security_class_id,
            "transaction_type": "ISSUE",
            "quantity": 100,
            "to_member_id": register_seed.member_one.member_id,
            "posted_date": "2026-03-01",
        },
        headers=_ACTOR_HEADERS,
    ).json()
    api_client.patch(
        f"/transactions/{created['transaction_id']}",
        json={"reference": "R-1", "description": "Seed allotment"},
        headers={"X-Actor-Id": "user-7"},
    )
    return created["transaction_id"]


def test_audit_json_pages_newest_first(
    api_client: TestClient,
    register_seed: RegisterSeed,
    audited_transaction_id: str,
) -> None:
    """Page audit rows with total and has_more metadata."""

    first_page = api_client.get("/audit", params={"entity_id": register_seed.entity.entity_id})
    second_page = api_client.get("/audit", params={"entity_id": register_seed.entity.entity_id, "offset": 2})

    assert first_page.status_code == 200
    assert first_page.json()["page"]["total"] == 3
    assert first_page.json()["page"]["has_more"] is True
    assert [item["action"] for item in first_page.json()["items"]] == ["UPDATE", "UPDATE"]
    assert second_page.json()["page"]["has_more"] is False
    assert second_page.json()["items"][0]["action"] == "CREATE"
    assert second_page.json()["items"][0]["record_id"] == audited_transaction_id


def test_audit_json_filters_by_actor_and_action(
    api_client: TestClient,
    register_seed: RegisterSeed,
    audited_transaction_id: str,
) -> None:
    entity_id = register_seed.entity.entity_id

    by_actor = api_client.get("/audit", params={"entity_id": entity_id, "actor_id": "user-7"})
    by_action = api_client.get("/audit", params={"entity_id": entity_id, "action": "create"})
    by_record = api_client.get("/audit", params={"entity_id": entity_id, "record_id": audited_transaction_id})

    assert by_actor.json()["page"]["total"] == 2
    assert {item["field_name"] for item in by_actor.json()["items"]} == {"reference", "description"}
    assert by_action.json()["page"]["total"] == 1
    assert by_record.json()["page"]["total"] == 3


def test_audit_csv_export_streams_every_row(
    api_client: TestClient,
    register_seed: RegisterSeed,
    audited_transaction_id: str,
) -> None:
    """Export ignores pagination and returns one CSV line per audit row."""

    response = api_client.get("/audit", params={"entity_id": register_seed.entity.entity_id, "format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert tuple(rows[0]) == AUDIT_CSV_HEADER
    assert len(rows) == 4
    assert rows[-1][2] == "CREATE"
    assert rows[-1][4] == audited_transaction_id


def test_audit_rejects_unknown_format(api_client: TestClient, register_seed: RegisterSeed) -> None:
    response = api_client.get("/audit", params={"entity_id": register_seed.entity.entity_id, "format": "xml"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_EXPORT_FORMAT"
