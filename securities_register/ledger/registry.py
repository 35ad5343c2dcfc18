"""Registry guards for member deletion and security class archiving."""

from __future__ import annotations

import logging
from dataclasses import asdict

from securities_register.audit import AuditRecorder
from securities_register.db import LedgerStorePort, MemberRecord, SecurityClassRecord
from securities_register.domain import (
    AuditTableName,
    LedgerError,
    MemberInUseError,
    MemberNotFoundError,
    SecurityClassNotFoundError,
)

from .writer import ledger_require_actor

logger = logging.getLogger(__name__)


class RegistryService:
    """Audited registry mutations that protect ledger history.

    A member referenced by any transaction cannot be deleted, and archiving a
    security class closes it to new transactions without touching its history.
    """

    def __init__(self, store: LedgerStorePort):
        """Initialize registry service.

        Args:
            store: Ledger persistence store providing units of work.

        Raises:
            ValueError: Raised when store is None.
        """

        if store is None:
            raise ValueError("store must not be None")
        self._store = store

    def registry_member_delete(self, member_id: str, actor_id: str) -> MemberRecord:
        """Delete a member that no transaction references.

        Args:
            member_id: Member identifier.
            actor_id: Authenticated actor for attribution.

        Returns:
            MemberRecord: The deleted member.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
            MemberNotFoundError: Raised when the member does not exist.
            MemberInUseError: Raised when a transaction references the member on either side.
        """

        try:
            ledger_require_actor(actor_id)
            with self._store.db_unit_of_work() as unit_of_work:
                member = unit_of_work.db_member_get(member_id)
                if member is None:
                    raise MemberNotFoundError([member_id])
                reference_count = unit_of_work.db_member_count_transaction_references(member_id)
                if reference_count > 0:
                    raise MemberInUseError("Cannot delete member with existing transactions")
                AuditRecorder(sink=unit_of_work).audit_log_delete(
                    entity_id=member.entity_id,
                    actor_id=actor_id,
                    table_name=AuditTableName.MEMBER.value,
                    record_id=member_id,
                    snapshot=asdict(member),
                )
                unit_of_work.db_member_delete(member_id)
        except LedgerError as error:
            logger.warning("member %s delete rejected: code=%s detail=%s", member_id, error.code, error.message)
            raise

        logger.info("member %s deleted by actor=%s", member_id, actor_id)
        return member

    def registry_security_class_set_archived(
        self,
        entity_id: str,
        security_class_id: str,
        is_archived: bool,
        actor_id: str,
    ) -> SecurityClassRecord:
        """Archive or unarchive a security class.

        Toggling to the current state is a no-op and writes no audit entry.

        Args:
            entity_id: Owning entity identifier.
            security_class_id: Security class identifier.
            is_archived: Target archived flag.
            actor_id: Authenticated actor for attribution.

        Returns:
            SecurityClassRecord: Security class after the toggle.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
            SecurityClassNotFoundError: Raised when the class does not exist in the entity.
        """

        try:
            ledger_require_actor(actor_id)
            with self._store.db_unit_of_work() as unit_of_work:
                unit_of_work.db_security_class_lock(security_class_id)
                security_class = unit_of_work.db_security_class_get(entity_id, security_class_id)
                if security_class is None:
                    raise SecurityClassNotFoundError(f"security class {security_class_id} not found")
                if security_class.is_archived == is_archived:
                    return security_class

                updated = unit_of_work.db_security_class_set_archived(security_class_id, is_archived)
                AuditRecorder(sink=unit_of_work).audit_log_archive(
                    entity_id=entity_id,
                    actor_id=actor_id,
                    table_name=AuditTableName.SECURITY_CLASS.value,
                    record_id=security_class_id,
                    is_archived=is_archived,
                )
        except LedgerError as error:
            logger.warning(
                "security class %s archive toggle rejected: code=%s detail=%s",
                security_class_id,
                error.code,
                error.message,
            )
            raise

        logger.info("security class %s archived=%s by actor=%s", security_class_id, is_archived, actor_id)
        return updated
