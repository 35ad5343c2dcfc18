"""Audit recorder writing append-only entries through the active unit of work."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from securities_register.db import AuditLogInsertRequest, AuditLogRecord, AuditSinkPort
from securities_register.domain import AuditAction, UnauthorizedError

from .diff import audit_jsonable

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Append audit entries for ledger and registry mutations.

    The recorder writes through the sink it is given. When that sink is a
    ledger unit of work the audit rows commit or roll back with the mutation.
    """

    def __init__(self, sink: AuditSinkPort):
        """Initialize audit recorder.

        Args:
            sink: Append-only audit sink bound to the caller's unit of work.

        Raises:
            ValueError: Raised when sink is None.
        """

        if sink is None:
            raise ValueError("sink must not be None")
        self._sink = sink

    def audit_log_create(
        self,
        entity_id: str,
        actor_id: str,
        table_name: str,
        record_id: str,
        snapshot: Mapping[str, Any],
    ) -> AuditLogRecord:
        """Record the full snapshot of a newly created record.

        Args:
            entity_id: Owning entity identifier.
            actor_id: Attributed actor.
            table_name: Audited table name.
            record_id: Created record identifier.
            snapshot: Field values of the created record.

        Returns:
            AuditLogRecord: Persisted audit row.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
        """

        return self._audit_write(
            entity_id=entity_id,
            actor_id=actor_id,
            action=AuditAction.CREATE.value,
            table_name=table_name,
            record_id=record_id,
            field_name=None,
            old_value=None,
            new_value=snapshot,
        )

    def audit_log_delete(
        self,
        entity_id: str,
        actor_id: str,
        table_name: str,
        record_id: str,
        snapshot: Mapping[str, Any],
    ) -> AuditLogRecord:
        """Record the full prior snapshot of a deleted record as the old value.

        Args:
            entity_id: Owning entity identifier.
            actor_id: Attributed actor.
            table_name: Audited table name.
            record_id: Deleted record identifier.
            snapshot: Field values captured before deletion.

        Returns:
            AuditLogRecord: Persisted audit row.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
        """

        return self._audit_write(
            entity_id=entity_id,
            actor_id=actor_id,
            action=AuditAction.DELETE.value,
            table_name=table_name,
            record_id=record_id,
            field_name=None,
            old_value=snapshot,
            new_value=None,
        )

    def audit_log_record_changes(  # pylint: disable=too-many-arguments
        self,
        entity_id: str,
        actor_id: str,
        action: str,
        table_name: str,
        record_id: str,
        changed_fields: Mapping[str, Mapping[str, Any]],
    ) -> list[AuditLogRecord]:
        """Record one audit row per changed field.

        Args:
            entity_id: Owning entity identifier.
            actor_id: Attributed actor.
            action: Audit action value, normally `UPDATE`.
            table_name: Audited table name.
            record_id: Changed record identifier.
            changed_fields: Output of `audit_changed_fields`.

        Returns:
            list[AuditLogRecord]: Persisted audit rows; empty when nothing changed.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
        """

        return [
            self._audit_write(
                entity_id=entity_id,
                actor_id=actor_id,
                action=action,
                table_name=table_name,
                record_id=record_id,
                field_name=field_name,
                old_value=change.get("old_value"),
                new_value=change.get("new_value"),
            )
            for field_name, change in changed_fields.items()
        ]

    def audit_log_archive(
        self,
        entity_id: str,
        actor_id: str,
        table_name: str,
        record_id: str,
        is_archived: bool,
    ) -> AuditLogRecord:
        """Record an archive or unarchive toggle."""

        return self._audit_write(
            entity_id=entity_id,
            actor_id=actor_id,
            action=AuditAction.ARCHIVE.value if is_archived else AuditAction.UNARCHIVE.value,
            table_name=table_name,
            record_id=record_id,
            field_name="is_archived",
            old_value=not is_archived,
            new_value=is_archived,
        )

    def _audit_write(  # pylint: disable=too-many-arguments
        self,
        entity_id: str,
        actor_id: str,
        action: str,
        table_name: str,
        record_id: str,
        field_name: str | None,
        old_value: Any,
        new_value: Any,
    ) -> AuditLogRecord:
        if not actor_id or not actor_id.strip():
            raise UnauthorizedError("an authenticated actor is required for audited mutations")

        record = self._sink.db_audit_log_insert(
            AuditLogInsertRequest(
                entity_id=entity_id,
                actor_id=actor_id,
                action=action,
                table_name=table_name,
                record_id=record_id,
                field_name=field_name,
                old_value=audit_jsonable(old_value),
                new_value=audit_jsonable(new_value),
            )
        )
        logger.debug(
            "audit entry %s recorded: %s %s %s field=%s",
            record.audit_log_id,
            action,
            table_name,
            record_id,
            field_name,
        )
        return record
