"""Audit log query and export services."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from typing import Any, Iterator

from securities_register.db import AuditLogFilters, AuditLogReadPort, AuditLogRecord

AUDIT_CSV_HEADER = (
    "Timestamp",
    "Actor",
    "Action",
    "Table",
    "Record ID",
    "Field Name",
    "Old Value",
    "New Value",
)


@dataclass(frozen=True)
class AuditQueryResult:
    """Paged audit query output.

    Attributes:
        entries: Audit rows for the requested page, newest first.
        total: Number of rows matching the filters.
        limit: Applied page size.
        offset: Applied page offset.
        has_more: Whether rows exist beyond this page.
    """

    entries: tuple[AuditLogRecord, ...]
    total: int
    limit: int
    offset: int
    has_more: bool


class AuditLogService:
    """Read-side service for audit log queries and CSV export."""

    def __init__(self, repository: AuditLogReadPort, default_limit: int = 50, max_limit: int = 200):
        """Initialize audit log service.

        Args:
            repository: Audit log read repository.
            default_limit: Page size used when the caller supplies none.
            max_limit: Largest accepted page size.

        Raises:
            ValueError: Raised when repository is None or limits are inconsistent.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        if default_limit < 1 or max_limit < default_limit:
            raise ValueError("limits must satisfy 1 <= default_limit <= max_limit")
        self._repository = repository
        self._default_limit = default_limit
        self._max_limit = max_limit

    def audit_query(self, filters: AuditLogFilters, limit: int | None = None, offset: int = 0) -> AuditQueryResult:
        """Return one page of audit rows plus pagination metadata.

        Args:
            filters: Entity scope and optional filters.
            limit: Optional page size; clamped to the configured maximum.
            offset: Number of rows to skip.

        Returns:
            AuditQueryResult: Page of audit rows with total and `has_more`.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            PersistenceFailureError: Raised when the read fails.
        """

        resolved_limit = self._default_limit if limit is None else limit
        if resolved_limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")
        resolved_limit = min(resolved_limit, self._max_limit)

        entries = self._repository.db_audit_log_list(filters=filters, limit=resolved_limit, offset=offset)
        total = self._repository.db_audit_log_count(filters=filters)
        return AuditQueryResult(
            entries=tuple(entries),
            total=total,
            limit=resolved_limit,
            offset=offset,
            has_more=offset + len(entries) < total,
        )

    def audit_export_csv(self, filters: AuditLogFilters) -> Iterator[str]:
        """Stream matching audit rows as CSV text chunks.

        The first chunk is the header row; each following chunk is one audit row.

        Args:
            filters: Entity scope and optional filters.

        Yields:
            str: CSV-encoded line including its terminator.

        Raises:
            PersistenceFailureError: Raised when the read fails.
        """

        yield audit_csv_line(AUDIT_CSV_HEADER)
        for record in self._repository.db_audit_log_iter(filters):
            yield audit_csv_line(
                (
                    record.created_at_utc.isoformat(),
                    record.actor_id,
                    record.action,
                    record.table_name,
                    record.record_id,
                    record.field_name or "",
                    audit_csv_value(record.old_value),
                    audit_csv_value(record.new_value),
                )
            )


def audit_csv_line(values: tuple[str, ...]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(values)
    return buffer.getvalue()


def audit_csv_value(value: Any) -> str:
    """Render one stored audit value for a CSV cell; containers become compact JSON."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, separators=(",", ":"))
