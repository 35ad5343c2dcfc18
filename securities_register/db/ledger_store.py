"""Database services for ledger transaction persistence and unit-of-work scoping."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator
from uuid import uuid4

from sqlalchemy import Connection, Engine, delete, func, insert, or_, select, text, update
from sqlalchemy.exc import SQLAlchemyError

from securities_register.domain import PersistenceFailureError, TransactionStatus

from .interfaces import (
    AuditLogInsertRequest,
    AuditLogRecord,
    EntityRecord,
    LedgerStorePort,
    LedgerUnitOfWorkPort,
    MemberRecord,
    RegisterCountsRecord,
    SecurityClassRecord,
    TransactionInsertRequest,
    TransactionListFilters,
    TransactionRecord,
)
from .session import db_build_advisory_lock_keys
from .tables import audit_log_table, entity_table, member_table, security_class_table, transaction_table

_DB_TRANSACTION_UPDATABLE_COLUMNS = frozenset(
    {
        "quantity",
        "amount_paid_per_security",
        "amount_unpaid_per_security",
        "transfer_price_per_security",
        "total_amount_paid",
        "total_amount_unpaid",
        "total_transfer_amount",
        "from_member_id",
        "to_member_id",
        "tranche_number",
        "tranche_sequence",
        "posted_date",
        "settlement_date",
        "status",
        "reference",
        "description",
        "certificate_number",
        "reason_code",
        "currency_code",
    }
)


class SQLAlchemyLedgerUnitOfWork(LedgerUnitOfWorkPort):
    """Ledger reads and writes bound to one open database transaction.

    Instances are created by `SQLAlchemyLedgerStore.db_unit_of_work` and must
    not outlive the `with` block that produced them.
    """

    def __init__(self, connection: Connection):
        if connection is None:
            raise ValueError("connection must not be None")
        self._connection = connection

    def db_entity_get(self, entity_id: str) -> EntityRecord | None:
        row = self._connection.execute(
            select(entity_table).where(entity_table.c.entity_id == entity_id)
        ).mappings().first()
        return None if row is None else db_map_entity_record(row)

    def db_security_class_lock(self, security_class_id: str) -> None:
        """Serialize ledger writers on one security class for the rest of the transaction.

        On PostgreSQL this takes a transaction-scoped advisory lock plus a row
        lock on the class. Other dialects rely on their database-level write lock.

        Args:
            security_class_id: Security class identifier used as lock scope.

        Returns:
            None: Lock is released on commit or rollback.

        Raises:
            SQLAlchemyError: Raised when lock acquisition fails.
        """

        if self._connection.dialect.name != "postgresql":
            return

        key_1, key_2 = db_build_advisory_lock_keys(f"security_class:{security_class_id}")
        self._connection.execute(
            text("SELECT pg_advisory_xact_lock(:key_1, :key_2)"),
            {"key_1": key_1, "key_2": key_2},
        )
        self._connection.execute(
            select(security_class_table.c.security_class_id)
            .where(security_class_table.c.security_class_id == security_class_id)
            .with_for_update()
        )

    def db_security_class_get(self, entity_id: str, security_class_id: str) -> SecurityClassRecord | None:
        row = self._connection.execute(
            select(security_class_table).where(
                security_class_table.c.security_class_id == security_class_id,
                security_class_table.c.entity_id == entity_id,
            )
        ).mappings().first()
        return None if row is None else db_map_security_class_record(row)

    def db_security_class_set_archived(self, security_class_id: str, is_archived: bool) -> SecurityClassRecord:
        """Toggle archived state for one security class.

        Args:
            security_class_id: Security class identifier.
            is_archived: Target archived flag.

        Returns:
            SecurityClassRecord: Updated row.

        Raises:
            LookupError: Raised when the class does not exist.
        """

        result = self._connection.execute(
            update(security_class_table)
            .where(security_class_table.c.security_class_id == security_class_id)
            .values(is_archived=is_archived, updated_at_utc=_db_utc_now())
        )
        if result.rowcount == 0:
            raise LookupError("security class not found")
        row = self._connection.execute(
            select(security_class_table).where(security_class_table.c.security_class_id == security_class_id)
        ).mappings().one()
        return db_map_security_class_record(row)

    def db_member_get(self, member_id: str) -> MemberRecord | None:
        row = self._connection.execute(
            select(member_table).where(member_table.c.member_id == member_id)
        ).mappings().first()
        return None if row is None else db_map_member_record(row)

    def db_member_find_existing_ids(self, entity_id: str, member_ids: set[str]) -> set[str]:
        """Resolve a batch of member ids in one query.

        Args:
            entity_id: Owning entity identifier.
            member_ids: Candidate member identifiers.

        Returns:
            set[str]: Member ids that exist within the entity.

        Raises:
            SQLAlchemyError: Raised when the read fails.
        """

        if not member_ids:
            return set()
        rows = self._connection.execute(
            select(member_table.c.member_id).where(
                member_table.c.entity_id == entity_id,
                member_table.c.member_id.in_(sorted(member_ids)),
            )
        ).all()
        return {row[0] for row in rows}

    def db_member_count_transaction_references(self, member_id: str) -> int:
        return int(
            self._connection.execute(
                select(func.count())
                .select_from(transaction_table)
                .where(
                    or_(
                        transaction_table.c.from_member_id == member_id,
                        transaction_table.c.to_member_id == member_id,
                    )
                )
            ).scalar_one()
        )

    def db_member_delete(self, member_id: str) -> None:
        result = self._connection.execute(delete(member_table).where(member_table.c.member_id == member_id))
        if result.rowcount == 0:
            raise LookupError("member not found")

    def db_transaction_insert(self, request: TransactionInsertRequest) -> TransactionRecord:
        """Insert one transaction row with generated id and timestamps.

        Args:
            request: Validated insert payload with computed totals.

        Returns:
            TransactionRecord: Persisted row as read back inside the transaction.

        Raises:
            SQLAlchemyError: Raised when the insert fails.
        """

        transaction_id = str(uuid4())
        created_at_utc = _db_utc_now()
        self._connection.execute(
            insert(transaction_table).values(
                transaction_id=transaction_id,
                entity_id=request.entity_id,
                security_class_id=request.security_class_id,
                transaction_type=request.transaction_type,
                reason_code=request.reason_code,
                quantity=request.quantity,
                amount_paid_per_security=request.amount_paid_per_security,
                amount_unpaid_per_security=request.amount_unpaid_per_security,
                transfer_price_per_security=request.transfer_price_per_security,
                currency_code=request.currency_code,
                total_amount_paid=request.total_amount_paid,
                total_amount_unpaid=request.total_amount_unpaid,
                total_transfer_amount=request.total_transfer_amount,
                from_member_id=request.from_member_id,
                to_member_id=request.to_member_id,
                tranche_number=request.tranche_number,
                tranche_sequence=request.tranche_sequence,
                posted_date=request.posted_date,
                settlement_date=request.settlement_date,
                status=request.status,
                reference=request.reference,
                description=request.description,
                certificate_number=request.certificate_number,
                created_by=request.created_by,
                created_at_utc=created_at_utc,
                updated_at_utc=created_at_utc,
            )
        )
        return self._db_fetch_transaction_or_raise(transaction_id)

    def db_transaction_get(self, transaction_id: str) -> TransactionRecord | None:
        row = self._connection.execute(
            select(transaction_table).where(transaction_table.c.transaction_id == transaction_id)
        ).mappings().first()
        return None if row is None else db_map_transaction_record(row)

    def db_transaction_update(self, transaction_id: str, values: dict[str, Any]) -> TransactionRecord:
        """Apply correction values to one transaction row.

        Args:
            transaction_id: Transaction identifier.
            values: Column values keyed by column name.

        Returns:
            TransactionRecord: Updated row.

        Raises:
            ValueError: Raised when a non-correctable column is supplied.
            LookupError: Raised when the transaction does not exist.
        """

        unknown_columns = set(values) - _DB_TRANSACTION_UPDATABLE_COLUMNS
        if unknown_columns:
            raise ValueError(f"columns are not updatable: {', '.join(sorted(unknown_columns))}")

        result = self._connection.execute(
            update(transaction_table)
            .where(transaction_table.c.transaction_id == transaction_id)
            .values(**values, updated_at_utc=_db_utc_now())
        )
        if result.rowcount == 0:
            raise LookupError("transaction not found")
        return self._db_fetch_transaction_or_raise(transaction_id)

    def db_transaction_delete(self, transaction_id: str) -> None:
        result = self._connection.execute(
            delete(transaction_table).where(transaction_table.c.transaction_id == transaction_id)
        )
        if result.rowcount == 0:
            raise LookupError("transaction not found")

    def db_audit_log_insert(self, request: AuditLogInsertRequest) -> AuditLogRecord:
        """Append one audit row inside the current transaction.

        Args:
            request: Audit row payload with JSON-compatible values.

        Returns:
            AuditLogRecord: Persisted audit row.

        Raises:
            SQLAlchemyError: Raised when the insert fails.
        """

        created_at_utc = _db_utc_now()
        result = self._connection.execute(
            insert(audit_log_table).values(
                entity_id=request.entity_id,
                actor_id=request.actor_id,
                action=request.action,
                table_name=request.table_name,
                record_id=request.record_id,
                field_name=request.field_name,
                old_value=request.old_value,
                new_value=request.new_value,
                event_metadata=request.event_metadata,
                created_at_utc=created_at_utc,
            )
        )
        return AuditLogRecord(
            audit_log_id=int(result.inserted_primary_key[0]),
            entity_id=request.entity_id,
            actor_id=request.actor_id,
            action=request.action,
            table_name=request.table_name,
            record_id=request.record_id,
            field_name=request.field_name,
            old_value=request.old_value,
            new_value=request.new_value,
            event_metadata=request.event_metadata,
            created_at_utc=created_at_utc,
        )

    def _db_fetch_transaction_or_raise(self, transaction_id: str) -> TransactionRecord:
        record = self.db_transaction_get(transaction_id)
        if record is None:
            raise LookupError("transaction not found")
        return record


class SQLAlchemyLedgerStore(LedgerStorePort):
    """SQLAlchemy-backed ledger store.

    Writes go through `db_unit_of_work`, which wraps one `engine.begin()`
    transaction: every statement issued through the yielded unit of work
    commits together or rolls back together.
    """

    def __init__(self, engine: Engine):
        """Initialize ledger store.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    @contextmanager
    def db_unit_of_work(self) -> Iterator[SQLAlchemyLedgerUnitOfWork]:
        """Open one atomic unit of work.

        Yields:
            SQLAlchemyLedgerUnitOfWork: Unit of work bound to the open transaction.

        Raises:
            PersistenceFailureError: Raised when storage fails; the transaction is rolled back.
        """

        try:
            with self._engine.begin() as connection:
                yield SQLAlchemyLedgerUnitOfWork(connection=connection)
        except SQLAlchemyError as error:
            raise PersistenceFailureError("ledger write failed and was rolled back") from error

    def db_entity_get(self, entity_id: str) -> EntityRecord | None:
        try:
            with self._engine.connect() as connection:
                return SQLAlchemyLedgerUnitOfWork(connection=connection).db_entity_get(entity_id)
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to fetch entity") from error

    def db_transaction_get_by_id(self, transaction_id: str) -> TransactionRecord | None:
        try:
            with self._engine.connect() as connection:
                return SQLAlchemyLedgerUnitOfWork(connection=connection).db_transaction_get(transaction_id)
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to fetch transaction by id") from error

    def db_transaction_list(self, filters: TransactionListFilters, limit: int, offset: int) -> list[TransactionRecord]:
        """List transactions for one entity, latest settlement first.

        Args:
            filters: Entity scope and optional member/type/class filters.
            limit: Maximum number of rows.
            offset: Number of rows to skip.

        Returns:
            list[TransactionRecord]: Ordered transaction rows.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            PersistenceFailureError: Raised when the read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        statement = select(transaction_table).where(transaction_table.c.entity_id == filters.entity_id)
        if filters.member_id is not None:
            statement = statement.where(
                or_(
                    transaction_table.c.from_member_id == filters.member_id,
                    transaction_table.c.to_member_id == filters.member_id,
                )
            )
        if filters.transaction_type is not None:
            statement = statement.where(transaction_table.c.transaction_type == filters.transaction_type)
        if filters.security_class_id is not None:
            statement = statement.where(transaction_table.c.security_class_id == filters.security_class_id)
        statement = statement.order_by(
            func.coalesce(transaction_table.c.settlement_date, transaction_table.c.posted_date).desc(),
            transaction_table.c.created_at_utc.desc(),
            transaction_table.c.transaction_id.desc(),
        ).limit(limit).offset(offset)

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to list transactions") from error
        return [db_map_transaction_record(row) for row in rows]

    def db_security_class_list_for_entity(self, entity_id: str, include_archived: bool) -> list[SecurityClassRecord]:
        statement = select(security_class_table).where(security_class_table.c.entity_id == entity_id)
        if not include_archived:
            statement = statement.where(security_class_table.c.is_archived.is_(False))
        statement = statement.order_by(security_class_table.c.name.asc(), security_class_table.c.security_class_id.asc())

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to list security classes") from error
        return [db_map_security_class_record(row) for row in rows]

    def db_transaction_list_completed(
        self,
        entity_id: str,
        security_class_id: str | None = None,
    ) -> list[TransactionRecord]:
        """List Completed transactions in posting order for aggregation.

        Args:
            entity_id: Owning entity identifier.
            security_class_id: Optional security class restriction.

        Returns:
            list[TransactionRecord]: Rows ordered by posted date, creation time, and id.

        Raises:
            PersistenceFailureError: Raised when the read fails.
        """

        statement = select(transaction_table).where(
            transaction_table.c.entity_id == entity_id,
            transaction_table.c.status == TransactionStatus.COMPLETED.value,
        )
        if security_class_id is not None:
            statement = statement.where(transaction_table.c.security_class_id == security_class_id)
        statement = statement.order_by(
            transaction_table.c.posted_date.asc(),
            transaction_table.c.created_at_utc.asc(),
            transaction_table.c.transaction_id.asc(),
        )

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to list completed transactions") from error
        return [db_map_transaction_record(row) for row in rows]

    def db_register_counts(self, entity_id: str) -> RegisterCountsRecord:
        """Count the dashboard totals for one entity in a single read transaction.

        Args:
            entity_id: Owning entity identifier.

        Returns:
            RegisterCountsRecord: Member, security class, and transaction counts.

        Raises:
            PersistenceFailureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                total_members = connection.execute(
                    select(func.count()).select_from(member_table).where(member_table.c.entity_id == entity_id)
                ).scalar_one()
                class_counts = connection.execute(
                    select(security_class_table.c.is_archived, func.count())
                    .where(security_class_table.c.entity_id == entity_id)
                    .group_by(security_class_table.c.is_archived)
                ).all()
                total_transactions = connection.execute(
                    select(func.count()).select_from(transaction_table).where(transaction_table.c.entity_id == entity_id)
                ).scalar_one()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to count register rows") from error

        classes_by_archived = {bool(is_archived): int(count) for is_archived, count in class_counts}
        return RegisterCountsRecord(
            total_members=int(total_members),
            active_security_classes=classes_by_archived.get(False, 0),
            archived_security_classes=classes_by_archived.get(True, 0),
            total_transactions=int(total_transactions),
        )


def db_map_entity_record(row: Any) -> EntityRecord:
    return EntityRecord(
        entity_id=row["entity_id"],
        name=row["name"],
        country=row["country"],
        default_currency_code=row["default_currency_code"],
        created_at_utc=db_coerce_utc(row["created_at_utc"]),
    )


def db_map_security_class_record(row: Any) -> SecurityClassRecord:
    return SecurityClassRecord(
        security_class_id=row["security_class_id"],
        entity_id=row["entity_id"],
        name=row["name"],
        symbol=row["symbol"],
        description=row["description"],
        voting_rights=bool(row["voting_rights"]),
        dividend_rights=bool(row["dividend_rights"]),
        is_active=bool(row["is_active"]),
        is_archived=bool(row["is_archived"]),
        created_at_utc=db_coerce_utc(row["created_at_utc"]),
        updated_at_utc=db_coerce_utc(row["updated_at_utc"]),
    )


def db_map_member_record(row: Any) -> MemberRecord:
    return MemberRecord(
        member_id=row["member_id"],
        entity_id=row["entity_id"],
        member_type=row["member_type"],
        display_name=row["display_name"],
        member_number=row["member_number"],
        country=row["country"],
        created_at_utc=db_coerce_utc(row["created_at_utc"]),
    )


def db_map_transaction_record(row: Any) -> TransactionRecord:
    """Map one transaction row mapping to a typed record.

    Args:
        row: SQLAlchemy row mapping.

    Returns:
        TransactionRecord: Typed transaction record.

    Raises:
        KeyError: Raised when row structure is incompatible.
    """

    return TransactionRecord(
        transaction_id=row["transaction_id"],
        entity_id=row["entity_id"],
        security_class_id=row["security_class_id"],
        transaction_type=row["transaction_type"],
        reason_code=row["reason_code"],
        quantity=int(row["quantity"]),
        amount_paid_per_security=row["amount_paid_per_security"],
        amount_unpaid_per_security=row["amount_unpaid_per_security"],
        transfer_price_per_security=row["transfer_price_per_security"],
        currency_code=row["currency_code"],
        total_amount_paid=row["total_amount_paid"],
        total_amount_unpaid=row["total_amount_unpaid"],
        total_transfer_amount=row["total_transfer_amount"],
        from_member_id=row["from_member_id"],
        to_member_id=row["to_member_id"],
        tranche_number=row["tranche_number"],
        tranche_sequence=row["tranche_sequence"],
        posted_date=row["posted_date"],
        settlement_date=row["settlement_date"],
        status=row["status"],
        reference=row["reference"],
        description=row["description"],
        certificate_number=row["certificate_number"],
        created_by=row["created_by"],
        created_at_utc=db_coerce_utc(row["created_at_utc"]),
        updated_at_utc=db_coerce_utc(row["updated_at_utc"]),
    )


def db_coerce_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps returned by dialects without timezone storage."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _db_utc_now() -> datetime:
    return datetime.now(timezone.utc)
