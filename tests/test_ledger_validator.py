"""Tests for per-type transaction shape rules and referential validation."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from securities_register.db import SecurityClassRecord
from securities_register.domain import (
    InvalidTransactionShapeError,
    MemberNotFoundError,
    SecurityClassArchivedError,
    SecurityClassNotFoundError,
)
from securities_register.ledger import validator_check_references, validator_check_shape

_FROM = "member-from"
_TO = "member-to"


@pytest.mark.parametrize(
    ("transaction_type", "from_member_id", "to_member_id"),
    [
        ("ISSUE", None, _TO),
        ("TRANSFER", _FROM, _TO),
        ("CANCELLATION", _FROM, None),
        ("REDEMPTION", _FROM, None),
        ("RETURN_OF_CAPITAL", _FROM, None),
        ("CAPITAL_CALL", _FROM, None),
    ],
)
def test_shape_accepts_valid_member_sides(transaction_type: str, from_member_id, to_member_id) -> None:
    """Accept each type with exactly the member sides it requires."""

    validator_check_shape(transaction_type, from_member_id, to_member_id, quantity=10)


@pytest.mark.parametrize(
    ("transaction_type", "from_member_id", "to_member_id", "expected_rule"),
    [
        ("ISSUE", _FROM, _TO, "ISSUE_FROM_MEMBER_MUST_BE_ABSENT"),
        ("ISSUE", None, None, "ISSUE_TO_MEMBER_REQUIRED"),
        ("TRANSFER", None, _TO, "TRANSFER_FROM_MEMBER_REQUIRED"),
        ("TRANSFER", _FROM, None, "TRANSFER_TO_MEMBER_REQUIRED"),
        ("CANCELLATION", None, None, "CANCELLATION_FROM_MEMBER_REQUIRED"),
        ("CANCELLATION", _FROM, _TO, "CANCELLATION_TO_MEMBER_MUST_BE_ABSENT"),
        ("REDEMPTION", _FROM, _TO, "REDEMPTION_TO_MEMBER_MUST_BE_ABSENT"),
        ("RETURN_OF_CAPITAL", None, None, "RETURN_OF_CAPITAL_FROM_MEMBER_REQUIRED"),
        ("CAPITAL_CALL", _FROM, _TO, "CAPITAL_CALL_TO_MEMBER_MUST_BE_ABSENT"),
    ],
)
def test_shape_rejects_invalid_member_sides(
    transaction_type: str,
    from_member_id,
    to_member_id,
    expected_rule: str,
) -> None:
    """Name the violated member-side rule."""

    with pytest.raises(InvalidTransactionShapeError) as error_info:
        validator_check_shape(transaction_type, from_member_id, to_member_id, quantity=10)

    assert error_info.value.rule == expected_rule


@pytest.mark.parametrize(
    ("kwargs", "expected_rule"),
    [
        ({"transaction_type": "GIFT"}, "UNKNOWN_TRANSACTION_TYPE"),
        ({"quantity": -1}, "QUANTITY_MUST_BE_NON_NEGATIVE_INTEGER"),
        ({"quantity": True}, "QUANTITY_MUST_BE_NON_NEGATIVE_INTEGER"),
        ({"transfer_price_per_security": Decimal("1.00")}, "TRANSFER_PRICE_ONLY_ON_TRANSFER"),
        ({"status": "Settled"}, "UNKNOWN_STATUS"),
        ({"reason_code": "ZZZ"}, "UNKNOWN_REASON_CODE"),
    ],
)
def test_shape_rejects_invalid_scalar_fields(kwargs: dict, expected_rule: str) -> None:
    """Reject unsupported types, negative quantity, misplaced transfer price, status, and reason."""

    arguments = {
        "transaction_type": "ISSUE",
        "from_member_id": None,
        "to_member_id": _TO,
        "quantity": 10,
    }
    arguments.update(kwargs)

    with pytest.raises(InvalidTransactionShapeError) as error_info:
        validator_check_shape(**arguments)

    assert error_info.value.rule == expected_rule


def test_shape_accepts_transfer_price_status_and_known_reason() -> None:
    validator_check_shape(
        "TRANSFER",
        _FROM,
        _TO,
        quantity=0,
        transfer_price_per_security=Decimal("2.50"),
        status="Pending",
        reason_code="plc",
    )


def _security_class(is_archived: bool = False) -> SecurityClassRecord:
    timestamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return SecurityClassRecord(
        security_class_id="class-1",
        entity_id="entity-1",
        name="Ordinary",
        symbol="ORD",
        description=None,
        voting_rights=True,
        dividend_rights=True,
        is_active=True,
        is_archived=is_archived,
        created_at_utc=timestamp,
        updated_at_utc=timestamp,
    )


class _UnitOfWorkStub:
    """Unit-of-work stub recording member batch lookups."""

    def __init__(self, security_class: SecurityClassRecord | None, existing_member_ids: set[str]) -> None:
        self._security_class = security_class
        self._existing_member_ids = existing_member_ids
        self.member_lookups: list[set[str]] = []

    def db_security_class_get(self, entity_id: str, security_class_id: str):
        _ = (entity_id, security_class_id)
        return self._security_class

    def db_member_find_existing_ids(self, entity_id: str, member_ids: set[str]) -> set[str]:
        _ = entity_id
        self.member_lookups.append(set(member_ids))
        return member_ids & self._existing_member_ids


def test_references_resolve_members_in_one_batch() -> None:
    """Look up the union of member ids once and return the security class."""

    unit_of_work = _UnitOfWorkStub(_security_class(), {"m1", "m2"})

    security_class = validator_check_references(unit_of_work, "entity-1", "class-1", ["m1", None, "m2", "m1"])

    assert security_class.security_class_id == "class-1"
    assert unit_of_work.member_lookups == [{"m1", "m2"}]


def test_references_report_every_missing_member() -> None:
    unit_of_work = _UnitOfWorkStub(_security_class(), {"m1"})

    with pytest.raises(MemberNotFoundError) as error_info:
        validator_check_references(unit_of_work, "entity-1", "class-1", ["m3", "m1", "m2"])

    assert error_info.value.missing_member_ids == ["m2", "m3"]


def test_references_reject_missing_and_archived_classes() -> None:
    with pytest.raises(SecurityClassNotFoundError):
        validator_check_references(_UnitOfWorkStub(None, set()), "entity-1", "class-1", [])

    archived_unit_of_work = _UnitOfWorkStub(_security_class(is_archived=True), {"m1"})
    with pytest.raises(SecurityClassArchivedError):
        validator_check_references(archived_unit_of_work, "entity-1", "class-1", ["m1"])
    assert archived_unit_of_work.member_lookups == []
