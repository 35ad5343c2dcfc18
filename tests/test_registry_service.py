"""Tests for member deletion guards and security class archiving."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import Engine

from securities_register.db import AuditLogFilters, SQLAlchemyAuditLogStore
from securities_register.domain import (
    MemberInUseError,
    MemberNotFoundError,
    SecurityClassArchivedError,
    SecurityClassNotFoundError,
    UnauthorizedError,
)
from securities_register.ledger import RegistryService, TransactionCreateRequest, TransactionLedgerService

from conftest import RegisterSeed

_ACTOR = "user-42"


def _audit_rows(engine: Engine, entity_id: str, table_name: str):
    return SQLAlchemyAuditLogStore(engine=engine).db_audit_log_list(
        AuditLogFilters(entity_id=entity_id, table_name=table_name),
        limit=200,
        offset=0,
    )


def test_member_referenced_as_destination_cannot_be_deleted(
    ledger_service: TransactionLedgerService,
    registry_service: RegistryService,
    register_seed: RegisterSeed,
    register_engine: Engine,
) -> None:
    """Reject deletion while any transaction references the member."""

    ledger_service.ledger_transaction_create(
        TransactionCreateRequest(
            entity_id=register_seed.entity.entity_id,
            security_class_id=register_seed.ordinary.security_class_id,
            transaction_type="ISSUE",
            quantity=10,
            to_member_id=register_seed.member_two.member_id,
            posted_date=date(2026, 3, 1),
        ),
        actor_id=_ACTOR,
    )

    with pytest.raises(MemberInUseError) as error_info:
        registry_service.registry_member_delete(register_seed.member_two.member_id, actor_id=_ACTOR)

    assert error_info.value.message == "Cannot delete member with existing transactions"
    assert _audit_rows(register_engine, register_seed.entity.entity_id, "Member") == []


def test_unreferenced_member_is_deleted_with_snapshot(
    registry_service: RegistryService,
    register_seed: RegisterSeed,
    register_engine: Engine,
) -> None:
    deleted = registry_service.registry_member_delete(register_seed.member_three.member_id, actor_id=_ACTOR)

    assert deleted.display_name == "Bob and Carol Smith"
    audit_rows = _audit_rows(register_engine, register_seed.entity.entity_id, "Member")
    assert len(audit_rows) == 1
    assert audit_rows[0].action == "DELETE"
    assert audit_rows[0].old_value["member_number"] == "M-003"

    with pytest.raises(MemberNotFoundError) as error_info:
        registry_service.registry_member_delete(register_seed.member_three.member_id, actor_id=_ACTOR)
    assert error_info.value.missing_member_ids == [register_seed.member_three.member_id]


def test_member_delete_requires_an_actor(registry_service: RegistryService, register_seed: RegisterSeed) -> None:
    with pytest.raises(UnauthorizedError):
        registry_service.registry_member_delete(register_seed.member_three.member_id, actor_id="")


def test_archive_toggle_audits_transitions_and_blocks_new_writes(
    ledger_service: TransactionLedgerService,
    registry_service: RegistryService,
    register_seed: RegisterSeed,
    register_engine: Engine,
) -> None:
    """Archive closes the class to new transactions; unarchive reopens it."""

    entity_id = register_seed.entity.entity_id
    security_class_id = register_seed.ordinary.security_class_id
    request = TransactionCreateRequest(
        entity_id=entity_id,
        security_class_id=security_class_id,
        transaction_type="ISSUE",
        quantity=10,
        to_member_id=register_seed.member_one.member_id,
    )

    archived = registry_service.registry_security_class_set_archived(entity_id, security_class_id, True, actor_id=_ACTOR)
    assert archived.is_archived is True
    with pytest.raises(SecurityClassArchivedError):
        ledger_service.ledger_transaction_create(request, actor_id=_ACTOR)

    unarchived = registry_service.registry_security_class_set_archived(entity_id, security_class_id, False, actor_id=_ACTOR)
    assert unarchived.is_archived is False
    ledger_service.ledger_transaction_create(request, actor_id=_ACTOR)

    audit_rows = _audit_rows(register_engine, entity_id, "SecurityClass")
    assert sorted(row.action for row in audit_rows) == ["ARCHIVE", "UNARCHIVE"]
    assert all(row.field_name == "is_archived" for row in audit_rows)


def test_archive_toggle_to_current_state_is_a_no_op(
    registry_service: RegistryService,
    register_seed: RegisterSeed,
    register_engine: Engine,
) -> None:
    result = registry_service.registry_security_class_set_archived(
        register_seed.entity.entity_id,
        register_seed.archived.security_class_id,
        True,
        actor_id=_ACTOR,
    )

    assert result.is_archived is True
    assert _audit_rows(register_engine, register_seed.entity.entity_id, "SecurityClass") == []

    with pytest.raises(SecurityClassNotFoundError):
        registry_service.registry_security_class_set_archived(
            register_seed.entity.entity_id,
            "no-such-class",
            True,
            actor_id=_ACTOR,
        )
