"""Tests for the command-line reconciliation summary."""

from __future__ import annotations

import json
from datetime import date

from securities_register.config import AppSettings
from securities_register.ledger import TransactionCreateRequest, TransactionLedgerService
from securities_register.main import main_print_summary

from conftest import RegisterSeed


def test_summary_command_prints_classes_and_holdings(
    migrated_database_url: str,
    ledger_service: TransactionLedgerService,
    register_seed: RegisterSeed,
    capsys,
) -> None:
    """Print one JSON document with summaries and derived member holdings."""

    ledger_service.ledger_transaction_create(
        TransactionCreateRequest(
            entity_id=register_seed.entity.entity_id,
            security_class_id=register_seed.ordinary.security_class_id,
            transaction_type="ISSUE",
            quantity=750,
            to_member_id=register_seed.member_two.member_id,
            posted_date=date(2026, 2, 1),
        ),
        actor_id="user-1",
    )

    exit_code = main_print_summary(
        settings=AppSettings(database_url=migrated_database_url, default_currency="AUD"),
        entity_id=register_seed.entity.entity_id,
        include_archived=False,
    )

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["securities"][0]["total_quantity"] == 750
    assert payload["member_holdings"] == {
        register_seed.ordinary.security_class_id: {register_seed.member_two.member_id: 750},
    }


def test_summary_command_fails_for_unknown_entity(migrated_database_url: str, capsys) -> None:
    exit_code = main_print_summary(
        settings=AppSettings(database_url=migrated_database_url),
        entity_id="no-such-entity",
        include_archived=False,
    )

    assert exit_code == 1
    assert capsys.readouterr().out == ""
