"""Database services for register reference rows: entities, security classes, members."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Engine, insert, select
from sqlalchemy.exc import SQLAlchemyError

from securities_register.domain import PersistenceFailureError

from .interfaces import EntityRecord, MemberRecord, SecurityClassRecord
from .ledger_store import db_map_entity_record, db_map_member_record, db_map_security_class_record
from .tables import entity_table, member_table, security_class_table


class SQLAlchemyRegistryStore:
    """Insert-side persistence for register reference rows.

    Registry maintenance screens live outside this service; these inserts back
    provisioning scripts and integration fixtures.
    """

    def __init__(self, engine: Engine):
        """Initialize registry store.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_entity_insert(
        self,
        name: str,
        country: str | None = None,
        default_currency_code: str | None = None,
    ) -> EntityRecord:
        """Insert one entity row.

        Args:
            name: Entity legal name.
            country: Optional country of registration.
            default_currency_code: Optional currency override.

        Returns:
            EntityRecord: Persisted entity.

        Raises:
            ValueError: Raised when name is blank.
            PersistenceFailureError: Raised when the insert fails.
        """

        if not name.strip():
            raise ValueError("name must not be blank")
        entity_id = str(uuid4())
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    insert(entity_table).values(
                        entity_id=entity_id,
                        name=name.strip(),
                        country=country,
                        default_currency_code=default_currency_code,
                        created_at_utc=datetime.now(timezone.utc),
                    )
                )
                row = connection.execute(
                    select(entity_table).where(entity_table.c.entity_id == entity_id)
                ).mappings().one()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to insert entity") from error
        return db_map_entity_record(row)

    def db_security_class_insert(  # pylint: disable=too-many-arguments
        self,
        entity_id: str,
        name: str,
        symbol: str | None = None,
        description: str | None = None,
        voting_rights: bool = True,
        dividend_rights: bool = True,
        is_archived: bool = False,
    ) -> SecurityClassRecord:
        """Insert one security class row.

        Args:
            entity_id: Owning entity identifier.
            name: Class name, unique within the entity.
            symbol: Optional short symbol.
            description: Optional description.
            voting_rights: Voting rights flag.
            dividend_rights: Dividend rights flag.
            is_archived: Initial archived flag.

        Returns:
            SecurityClassRecord: Persisted security class.

        Raises:
            ValueError: Raised when name is blank.
            PersistenceFailureError: Raised when the insert fails.
        """

        if not name.strip():
            raise ValueError("name must not be blank")
        security_class_id = str(uuid4())
        created_at_utc = datetime.now(timezone.utc)
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    insert(security_class_table).values(
                        security_class_id=security_class_id,
                        entity_id=entity_id,
                        name=name.strip(),
                        symbol=symbol,
                        description=description,
                        voting_rights=voting_rights,
                        dividend_rights=dividend_rights,
                        is_active=True,
                        is_archived=is_archived,
                        created_at_utc=created_at_utc,
                        updated_at_utc=created_at_utc,
                    )
                )
                row = connection.execute(
                    select(security_class_table).where(
                        security_class_table.c.security_class_id == security_class_id
                    )
                ).mappings().one()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to insert security class") from error
        return db_map_security_class_record(row)

    def db_member_insert(
        self,
        entity_id: str,
        member_type: str,
        display_name: str,
        member_number: str | None = None,
        country: str | None = None,
    ) -> MemberRecord:
        """Insert one register member row.

        Raises:
            ValueError: Raised when display_name is blank.
            PersistenceFailureError: Raised when the insert fails.
        """

        if not display_name.strip():
            raise ValueError("display_name must not be blank")
        member_id = str(uuid4())
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    insert(member_table).values(
                        member_id=member_id,
                        entity_id=entity_id,
                        member_type=member_type,
                        display_name=display_name.strip(),
                        member_number=member_number,
                        country=country,
                        created_at_utc=datetime.now(timezone.utc),
                    )
                )
                row = connection.execute(
                    select(member_table).where(member_table.c.member_id == member_id)
                ).mappings().one()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to insert member") from error
        return db_map_member_record(row)
