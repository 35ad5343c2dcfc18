"""Tests for transaction, securities, and member API routes over a migrated SQLite database."""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine

from securities_register.api import create_api_application
from securities_register.audit import AuditLogService
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
    """Build an application wired to the migrated test database."""

    settings = AppSettings(
        environment_name="test",
        database_url=migrated_database_url,
        default_currency="AUD",
        api_default_limit=2,
        api_max_limit=3,
    )
    application = create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=register_engine),
        ledger_service=ledger_service,
        registry_service=registry_service,
        audit_service=AuditLogService(repository=SQLAlchemyAuditLogStore(engine=register_engine)),
    )
    return TestClient(application)


def _issue_body(seed: RegisterSeed, **overrides) -> dict[str, object]:
    body: dict[str, object] = {
        "entity_id": seed.entity.entity_id,
        "security_class_id": seed.ordinary.security_class_id,
        "transaction_type": "ISSUE",
        "quantity": 1000,
        "amount_paid_per_security": "1.00",
        "to_member_id": seed.member_one.member_id,
        "tranche_number": "T1",
        "posted_date": "2026-03-01",
    }
    body.update(overrides)
    return body


def test_create_transaction_returns_created_payload(api_client: TestClient, register_seed: RegisterSeed) -> None:
    """Return 201 with decimal totals rendered as strings."""

    response = api_client.post("/transactions", json=_issue_body(register_seed), headers=_ACTOR_HEADERS)

    assert response.status_code == 201
    payload = response.json()
    assert payload["transaction_type"] == "ISSUE"
    assert payload["currency_code"] == "AUD"
    assert payload["created_by"] == "user-42"
    assert isinstance(payload["total_amount_paid"], str)
    assert Decimal(payload["total_amount_paid"]) == Decimal("1000")
    assert payload["total_transfer_amount"] is None
    assert payload["settlement_date"] == "2026-03-01"


def test_create_transaction_requires_actor_header(api_client: TestClient, register_seed: RegisterSeed) -> None:
    response = api_client.post("/transactions", json=_issue_body(register_seed))

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_create_transaction_reports_shape_rule(api_client: TestClient, register_seed: RegisterSeed) -> None:
    """Return 400 with the violated rule in the error envelope."""

    response = api_client.post(
        "/transactions",
        json=_issue_body(register_seed, transaction_type="TRANSFER", from_member_id=None),
        headers=_ACTOR_HEADERS,
    )

    assert response.status_code == 400
    assert response.json() == {
        "status": "error",
        "code": "INVALID_TRANSACTION_SHAPE",
        "message": response.json()["message"],
        "rule": "TRANSFER_FROM_MEMBER_REQUIRED",
    }


def test_create_transaction_rejects_json_float_amounts(api_client: TestClient, register_seed: RegisterSeed) -> None:
    response = api_client.post(
        "/transactions",
        json=_issue_body(register_seed, amount_paid_per_security=0.1),
        headers=_ACTOR_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


def test_create_transaction_maps_reference_failures(api_client: TestClient, register_seed: RegisterSeed) -> None:
    archived_response = api_client.post(
        "/transactions",
        json=_issue_body(register_seed, security_class_id=register_seed.archived.security_class_id),
        headers=_ACTOR_HEADERS,
    )
    missing_member_response = api_client.post(
        "/transactions",
        json=_issue_body(register_seed, to_member_id="ghost"),
        headers=_ACTOR_HEADERS,
    )
    missing_class_response = api_client.post(
        "/transactions",
        json=_issue_body(register_seed, security_class_id="no-such-class"),
        headers=_ACTOR_HEADERS,
    )

    assert archived_response.status_code == 409
    assert archived_response.json()["code"] == "SECURITY_CLASS_ARCHIVED"
    assert missing_member_response.status_code == 404
    assert missing_member_response.json()["missing_member_ids"] == ["ghost"]
    assert missing_class_response.status_code == 404


def test_bulk_create_returns_all_rows(api_client: TestClient, register_seed: RegisterSeed) -> None:
    body = {
        "entity_id": register_seed.entity.entity_id,
        "security_class_id": register_seed.ordinary.security_class_id,
        "transaction_type": "ISSUE",
        "posted_date": "2026-04-01",
        "transactions": [
            {"quantity": 100, "to_member_id": register_seed.member_one.member_id},
            {"quantity": 200, "to_member_id": register_seed.member_two.member_id, "reference": "LINE-2"},
        ],
    }

    response = api_client.post("/transactions/bulk", json=body, headers=_ACTOR_HEADERS)

    assert response.status_code == 201
    assert response.json()["count"] == 2
    assert [row["quantity"] for row in response.json()["created"]] == [100, 200]


def test_bulk_create_rejects_batch_with_unknown_member(api_client: TestClient, register_seed: RegisterSeed) -> None:
    """Reject the whole batch and leave the register empty."""

    body = {
        "entity_id": register_seed.entity.entity_id,
        "security_class_id": register_seed.ordinary.security_class_id,
        "transaction_type": "ISSUE",
        "transactions": [
            {"quantity": 100, "to_member_id": register_seed.member_one.member_id},
            {"quantity": 100, "to_member_id": "ghost"},
        ],
    }

    response = api_client.post("/transactions/bulk", json=body, headers=_ACTOR_HEADERS)
    listing = api_client.get("/transactions", params={"entity_id": register_seed.entity.entity_id})

    assert response.status_code == 404
    assert response.json()["missing_member_ids"] == ["ghost"]
    assert listing.json()["items"] == []


def test_bulk_create_rejects_empty_batch(api_client: TestClient, register_seed: RegisterSeed) -> None:
    body = {
        "entity_id": register_seed.entity.entity_id,
        "security_class_id": register_seed.ordinary.security_class_id,
        "transaction_type": "ISSUE",
        "transactions": [],
    }

    response = api_client.post("/transactions/bulk", json=body, headers=_ACTOR_HEADERS)

    assert response.status_code == 400


def test_list_clamps_limit_and_paginates(api_client: TestClient, register_seed: RegisterSeed) -> None:
    for quantity in (10, 20, 30, 40):
        api_client.post("/transactions", json=_issue_body(register_seed, quantity=quantity), headers=_ACTOR_HEADERS)

    default_page = api_client.get("/transactions", params={"entity_id": register_seed.entity.entity_id})
    clamped_page = api_client.get("/transactions", params={"entity_id": register_seed.entity.entity_id, "limit": 100})

    assert default_page.status_code == 200
    assert default_page.json()["page"]["returned"] == 2
    assert clamped_page.json()["page"]["applied_limit"] == 3
    assert clamped_page.json()["page"]["returned"] == 3


def test_patch_get_and_delete_round_trip(api_client: TestClient, register_seed: RegisterSeed) -> None:
    """Correct a transaction, read it back, then delete it."""

    created = api_client.post("/transactions", json=_issue_body(register_seed), headers=_ACTOR_HEADERS).json()
    transaction_path = f"/transactions/{created['transaction_id']}"

    patched = api_client.patch(transaction_path, json={"quantity": 1500}, headers=_ACTOR_HEADERS)
    fetched = api_client.get(transaction_path)
    unknown_field = api_client.patch(transaction_path, json={"transaction_type": "TRANSFER"}, headers=_ACTOR_HEADERS)
    deleted = api_client.delete(transaction_path, headers=_ACTOR_HEADERS)
    missing = api_client.get(transaction_path)

    assert patched.status_code == 200
    assert Decimal(patched.json()["total_amount_paid"]) == Decimal("1500")
    assert fetched.json()["quantity"] == 1500
    assert unknown_field.status_code == 400
    assert deleted.status_code == 200
    assert deleted.json()["status"] == "deleted"
    assert deleted.json()["transaction"]["transaction_id"] == created["transaction_id"]
    assert missing.status_code == 404
    assert missing.json()["code"] == "TRANSACTION_NOT_FOUND"


def test_security_summary_endpoint(api_client: TestClient, register_seed: RegisterSeed) -> None:
    api_client.post("/transactions", json=_issue_body(register_seed), headers=_ACTOR_HEADERS)
    api_client.post(
        "/transactions",
        json=_issue_body(
            register_seed,
            transaction_type="CANCELLATION",
            quantity=400,
            from_member_id=register_seed.member_one.member_id,
            to_member_id=None,
            tranche_number=None,
        ),
        headers=_ACTOR_HEADERS,
    )

    response = api_client.get("/securities/summary", params={"entity_id": register_seed.entity.entity_id})
    missing_entity = api_client.get("/securities/summary", params={"entity_id": "no-such-entity"})

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["name"] for item in items] == ["Ordinary"]
    assert items[0]["total_quantity"] == 600
    assert Decimal(items[0]["total_amount_paid"]) == Decimal("600")
    assert items[0]["tranches"][0]["tranche_number"] == "T1"
    assert items[0]["tranches"][0]["issue_date"] == "2026-03-01"
    assert missing_entity.status_code == 404


def test_archive_and_unarchive_endpoints(api_client: TestClient, register_seed: RegisterSeed) -> None:
    class_path = f"/securities/{register_seed.ordinary.security_class_id}"
    params = {"entity_id": register_seed.entity.entity_id}

    archived = api_client.post(f"{class_path}/archive", params=params, headers=_ACTOR_HEADERS)
    blocked = api_client.post("/transactions", json=_issue_body(register_seed), headers=_ACTOR_HEADERS)
    unarchived = api_client.post(f"{class_path}/unarchive", params=params, headers=_ACTOR_HEADERS)
    unauthenticated = api_client.post(f"{class_path}/archive", params=params)

    assert archived.status_code == 200
    assert archived.json()["is_archived"] is True
    assert blocked.status_code == 409
    assert unarchived.json()["is_archived"] is False
    assert unauthenticated.status_code == 401


def test_member_delete_conflicts_while_referenced(api_client: TestClient, register_seed: RegisterSeed) -> None:
    """Return 409 for a referenced member and 200 for an unreferenced one."""

    api_client.post("/transactions", json=_issue_body(register_seed), headers=_ACTOR_HEADERS)

    referenced = api_client.delete(f"/members/{register_seed.member_one.member_id}", headers=_ACTOR_HEADERS)
    unreferenced = api_client.delete(f"/members/{register_seed.member_three.member_id}", headers=_ACTOR_HEADERS)

    assert referenced.status_code == 409
    assert referenced.json() == {
        "status": "error",
        "code": "MEMBER_IN_USE",
        "message": "Cannot delete member with existing transactions",
    }
    assert unreferenced.status_code == 200
    assert unreferenced.json()["member_id"] == register_seed.member_three.member_id


def test_register_summary_reports_counts_and_recent_activity(api_client: TestClient, register_seed: RegisterSeed) -> None:
    """Return dashboard counts with the latest transactions first."""

    api_client.post("/transactions", json=_issue_body(register_seed), headers=_ACTOR_HEADERS)
    api_client.post(
        "/transactions",
        json=_issue_body(register_seed, quantity=50, posted_date="2026-03-09", to_member_id=register_seed.member_two.member_id),
        headers=_ACTOR_HEADERS,
    )

    response = api_client.get("/register/summary", params={"entity_id": register_seed.entity.entity_id})
    missing_entity = api_client.get("/register/summary", params={"entity_id": "no-such-entity"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_members"] == 3
    assert payload["total_security_classes"] == 2
    assert payload["active_security_classes"] == 1
    assert payload["archived_security_classes"] == 1
    assert payload["total_transactions"] == 2
    assert [row["quantity"] for row in payload["recent_transactions"]] == [50, 1000]
    assert missing_entity.status_code == 404


def test_create_transaction_rejects_amounts_beyond_column_scale(api_client: TestClient, register_seed: RegisterSeed) -> None:
    response = api_client.post(
        "/transactions",
        json=_issue_body(register_seed, amount_paid_per_security="0.0000004"),
        headers=_ACTOR_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["rule"] == "AMOUNT_PAID_PER_SECURITY_SCALE_EXCEEDED"
