"""Database services for audit log reads and exports."""

from __future__ import annotations

from typing import Any, Iterator

from sqlalchemy import Engine, Select, func, select
from sqlalchemy.exc import SQLAlchemyError

from securities_register.domain import PersistenceFailureError

from .interfaces import AuditLogFilters, AuditLogReadPort, AuditLogRecord
from .ledger_store import db_coerce_utc
from .tables import audit_log_table

_DB_AUDIT_STREAM_BATCH_SIZE = 500


class SQLAlchemyAuditLogStore(AuditLogReadPort):
    """Read-only SQLAlchemy access to the append-only audit log."""

    def __init__(self, engine: Engine):
        """Initialize audit log store.

        Args:
            engine: SQLAlchemy engine used for audit reads.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_audit_log_list(self, filters: AuditLogFilters, limit: int, offset: int) -> list[AuditLogRecord]:
        """List audit rows newest first.

        Args:
            filters: Entity scope and optional filters.
            limit: Maximum number of rows.
            offset: Number of rows to skip.

        Returns:
            list[AuditLogRecord]: Ordered audit rows.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            PersistenceFailureError: Raised when the read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        statement = _db_apply_audit_filters(select(audit_log_table), filters)
        statement = statement.order_by(
            audit_log_table.c.created_at_utc.desc(),
            audit_log_table.c.audit_log_id.desc(),
        ).limit(limit).offset(offset)

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to list audit log rows") from error
        return [db_map_audit_log_record(row) for row in rows]

    def db_audit_log_count(self, filters: AuditLogFilters) -> int:
        statement = _db_apply_audit_filters(select(func.count()).select_from(audit_log_table), filters)
        try:
            with self._engine.connect() as connection:
                return int(connection.execute(statement).scalar_one())
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to count audit log rows") from error

    def db_audit_log_iter(self, filters: AuditLogFilters) -> Iterator[AuditLogRecord]:
        """Stream matching audit rows newest first without materializing the full set.

        Rows are fetched in partitions from a streaming result; the connection
        stays open until the iterator is exhausted or closed.

        Args:
            filters: Entity scope and optional filters.

        Yields:
            AuditLogRecord: Audit rows in export order.

        Raises:
            PersistenceFailureError: Raised when the read fails.
        """

        statement = _db_apply_audit_filters(select(audit_log_table), filters).order_by(
            audit_log_table.c.created_at_utc.desc(),
            audit_log_table.c.audit_log_id.desc(),
        )
        try:
            with self._engine.connect() as connection:
                result = connection.execution_options(yield_per=_DB_AUDIT_STREAM_BATCH_SIZE).execute(statement)
                for partition in result.mappings().partitions():
                    for row in partition:
                        yield db_map_audit_log_record(row)
        except SQLAlchemyError as error:
            raise PersistenceFailureError("failed to stream audit log rows") from error


def _db_apply_audit_filters(statement: Select, filters: AuditLogFilters) -> Select:
    statement = statement.where(audit_log_table.c.entity_id == filters.entity_id)
    if filters.start_at_utc is not None:
        statement = statement.where(audit_log_table.c.created_at_utc >= filters.start_at_utc)
    if filters.end_at_utc is not None:
        statement = statement.where(audit_log_table.c.created_at_utc <= filters.end_at_utc)
    if filters.actor_id is not None:
        statement = statement.where(audit_log_table.c.actor_id == filters.actor_id)
    if filters.table_name is not None:
        statement = statement.where(audit_log_table.c.table_name == filters.table_name)
    if filters.record_id is not None:
        statement = statement.where(audit_log_table.c.record_id == filters.record_id)
    if filters.action is not None:
        statement = statement.where(audit_log_table.c.action == filters.action)
    return statement


def db_map_audit_log_record(row: Any) -> AuditLogRecord:
    return AuditLogRecord(
        audit_log_id=int(row["audit_log_id"]),
        entity_id=row["entity_id"],
        actor_id=row["actor_id"],
        action=row["action"],
        table_name=row["table_name"],
        record_id=row["record_id"],
        field_name=row["field_name"],
        old_value=row["old_value"],
        new_value=row["new_value"],
        event_metadata=row["event_metadata"],
        created_at_utc=db_coerce_utc(row["created_at_utc"]),
    )
