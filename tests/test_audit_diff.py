"""Tests for audit change detection and JSON shaping."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from securities_register.audit import audit_changed_fields, audit_jsonable
from securities_register.domain import TransactionType


def test_changed_fields_excludes_values_that_did_not_change() -> None:
    """Drop fields present in the patch whose value is equal."""

    old_values = {"quantity": 100, "reference": "R-1", "posted_date": date(2026, 3, 1)}
    new_values = {"quantity": 100, "reference": "R-2", "posted_date": date(2026, 3, 1)}

    assert audit_changed_fields(old_values, new_values) == {
        "reference": {"old_value": "R-1", "new_value": "R-2"},
    }


def test_changed_fields_compares_decimals_numerically() -> None:
    old_values = {"total_amount_paid": Decimal("1000.000000")}

    assert audit_changed_fields(old_values, {"total_amount_paid": Decimal("1000.00")}) == {}
    assert audit_changed_fields(old_values, {"total_amount_paid": Decimal("1000.01")}) == {
        "total_amount_paid": {"old_value": Decimal("1000.000000"), "new_value": Decimal("1000.01")},
    }


def test_changed_fields_detects_null_transitions_and_containers() -> None:
    old_values = {"settlement_date": None, "tags": ["a", "b"], "meta": {"k": 1}}
    new_values = {"settlement_date": date(2026, 3, 2), "tags": ["a", "b"], "meta": {"k": 2}}

    changes = audit_changed_fields(old_values, new_values)

    assert set(changes) == {"settlement_date", "meta"}


def test_changed_fields_honours_explicit_field_names() -> None:
    old_values = {"quantity": 1, "reference": "A"}
    new_values = {"quantity": 2, "reference": "B"}

    assert list(audit_changed_fields(old_values, new_values, field_names=["reference"])) == ["reference"]


def test_changed_fields_treats_bool_and_int_as_different() -> None:
    assert audit_changed_fields({"flag": 1}, {"flag": True}) == {"flag": {"old_value": 1, "new_value": True}}


def test_jsonable_renders_decimals_dates_and_enums() -> None:
    payload = audit_jsonable(
        {
            "amount": Decimal("1.500000"),
            "posted_date": date(2026, 3, 1),
            "created_at_utc": datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
            "transaction_type": TransactionType.ISSUE,
            "ids": ("a", "b"),
        }
    )

    assert payload == {
        "amount": "1.500000",
        "posted_date": "2026-03-01",
        "created_at_utc": "2026-03-01T09:30:00+00:00",
        "transaction_type": "ISSUE",
        "ids": ["a", "b"],
    }
