"""Shared fixtures for tests that need a migrated register database.

The schema is created by running the Alembic migrations against a temporary
SQLite file so store tests exercise the same DDL as production.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import Engine

from securities_register.config import LedgerConfig
from securities_register.db import (
    EntityRecord,
    MemberRecord,
    SecurityClassRecord,
    SQLAlchemyLedgerStore,
    SQLAlchemyRegistryStore,
    db_create_engine,
)
from securities_register.domain import MemberType
from securities_register.ledger import RegistryService, TransactionLedgerService

REPOSITORY_ROOT = Path(__file__).resolve().parents[1]


def build_alembic_config() -> Config:
    """Create an Alembic config pointing at the repository migrations."""

    alembic_config = Config()
    alembic_config.set_main_option("script_location", str(REPOSITORY_ROOT / "alembic"))
    return alembic_config


@dataclass(frozen=True)
class RegisterSeed:
    """Seeded reference rows for ledger tests."""

    entity: EntityRecord
    ordinary: SecurityClassRecord
    archived: SecurityClassRecord
    member_one: MemberRecord
    member_two: MemberRecord
    member_three: MemberRecord


@pytest.fixture
def migrated_database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Apply all migrations to a fresh SQLite file and return its URL."""

    database_url = f"sqlite:///{tmp_path / 'register.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)
    command.upgrade(build_alembic_config(), "head")
    return database_url


@pytest.fixture
def register_engine(migrated_database_url: str) -> Iterator[Engine]:
    engine = db_create_engine(database_url=migrated_database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def register_seed(register_engine: Engine) -> RegisterSeed:
    """Seed one entity with an active class, an archived class, and three members."""

    registry_store = SQLAlchemyRegistryStore(engine=register_engine)
    entity = registry_store.db_entity_insert(name="Acme Holdings Pty Ltd", country="Australia")
    ordinary = registry_store.db_security_class_insert(entity_id=entity.entity_id, name="Ordinary", symbol="ORD")
    archived = registry_store.db_security_class_insert(
        entity_id=entity.entity_id,
        name="Legacy Preference",
        symbol="PREF",
        is_archived=True,
    )
    member_one = registry_store.db_member_insert(
        entity_id=entity.entity_id,
        member_type=MemberType.INDIVIDUAL.value,
        display_name="Alice Nguyen",
        member_number="M-001",
    )
    member_two = registry_store.db_member_insert(
        entity_id=entity.entity_id,
        member_type=MemberType.ORGANIZATION.value,
        display_name="Harbour Capital Pty Ltd",
        member_number="M-002",
    )
    member_three = registry_store.db_member_insert(
        entity_id=entity.entity_id,
        member_type=MemberType.JOINT.value,
        display_name="Bob and Carol Smith",
        member_number="M-003",
    )
    return RegisterSeed(
        entity=entity,
        ordinary=ordinary,
        archived=archived,
        member_one=member_one,
        member_two=member_two,
        member_three=member_three,
    )


@pytest.fixture
def ledger_store(register_engine: Engine) -> SQLAlchemyLedgerStore:
    return SQLAlchemyLedgerStore(engine=register_engine)


@pytest.fixture
def ledger_service(ledger_store: SQLAlchemyLedgerStore) -> TransactionLedgerService:
    return TransactionLedgerService(store=ledger_store, config=LedgerConfig(default_currency_code="AUD"))


@pytest.fixture
def registry_service(ledger_store: SQLAlchemyLedgerStore) -> RegistryService:
    return RegistryService(store=ledger_store)
