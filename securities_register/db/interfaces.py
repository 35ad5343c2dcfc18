"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator, Protocol

from securities_register.domain import HealthStatus


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class EntityRecord:
    """Persistence model for one entity row.

    Attributes:
        entity_id: Unique entity identifier.
        name: Entity legal name.
        country: Optional country of registration.
        default_currency_code: Optional entity-level currency override.
        created_at_utc: Row creation timestamp in UTC.
    """

    entity_id: str
    name: str
    country: str | None
    default_currency_code: str | None
    created_at_utc: datetime


@dataclass(frozen=True)
class RegisterCountsRecord:
    """Row counts for one entity's register dashboard.

    Attributes:
        total_members: Members registered under the entity.
        active_security_classes: Security classes open to new transactions.
        archived_security_classes: Archived security classes.
        total_transactions: Transactions in any status.
    """

    total_members: int
    active_security_classes: int
    archived_security_classes: int
    total_transactions: int


@dataclass(frozen=True)
class SecurityClassRecord:
    """Persistence model for one security class row.

    Attributes:
        security_class_id: Unique security class identifier.
        entity_id: Owning entity identifier.
        name: Class name, unique within the entity.
        symbol: Optional short symbol.
        description: Optional free-text description.
        voting_rights: Whether holders carry voting rights.
        dividend_rights: Whether holders carry dividend rights.
        is_active: Whether the class is active.
        is_archived: Whether the class is archived and closed to new transactions.
        created_at_utc: Row creation timestamp in UTC.
        updated_at_utc: Last update timestamp in UTC.
    """

    security_class_id: str
    entity_id: str
    name: str
    symbol: str | None
    description: str | None
    voting_rights: bool
    dividend_rights: bool
    is_active: bool
    is_archived: bool
    created_at_utc: datetime
    updated_at_utc: datetime


@dataclass(frozen=True)
class MemberRecord:
    """Persistence model for one register member row.

    Attributes:
        member_id: Unique member identifier.
        entity_id: Owning entity identifier.
        member_type: Holder classification (`Individual`, `Joint`, `Organization`).
        display_name: Registered holder name.
        member_number: Optional member number, unique within the entity.
        country: Optional country of residence.
        created_at_utc: Row creation timestamp in UTC.
    """

    member_id: str
    entity_id: str
    member_type: str
    display_name: str
    member_number: str | None
    country: str | None
    created_at_utc: datetime


@dataclass(frozen=True)
class TransactionRecord:  # pylint: disable=too-many-instance-attributes
    """Persistence model for one register transaction row.

    Attributes:
        transaction_id: Unique transaction identifier.
        entity_id: Owning entity identifier.
        security_class_id: Security class identifier.
        transaction_type: Transaction type value.
        reason_code: Optional holding-adjustment reason code.
        quantity: Number of securities.
        amount_paid_per_security: Optional paid amount per security.
        amount_unpaid_per_security: Optional unpaid amount per security.
        transfer_price_per_security: Optional transfer price (TRANSFER only).
        currency_code: Opaque currency code.
        total_amount_paid: Derived paid total.
        total_amount_unpaid: Derived unpaid total.
        total_transfer_amount: Derived transfer consideration total.
        from_member_id: Optional source member.
        to_member_id: Optional destination member.
        tranche_number: Optional tranche identifier.
        tranche_sequence: Optional position within the tranche.
        posted_date: Register posting date.
        settlement_date: Optional settlement date.
        status: Transaction status value.
        reference: Optional external reference.
        description: Optional description.
        certificate_number: Optional certificate number.
        created_by: Actor that created the row.
        created_at_utc: Row creation timestamp in UTC.
        updated_at_utc: Last update timestamp in UTC.
    """

    transaction_id: str
    entity_id: str
    security_class_id: str
    transaction_type: str
    reason_code: str | None
    quantity: int
    amount_paid_per_security: Decimal | None
    amount_unpaid_per_security: Decimal | None
    transfer_price_per_security: Decimal | None
    currency_code: str
    total_amount_paid: Decimal | None
    total_amount_unpaid: Decimal | None
    total_transfer_amount: Decimal | None
    from_member_id: str | None
    to_member_id: str | None
    tranche_number: str | None
    tranche_sequence: int | None
    posted_date: date
    settlement_date: date | None
    status: str
    reference: str | None
    description: str | None
    certificate_number: str | None
    created_by: str
    created_at_utc: datetime
    updated_at_utc: datetime


@dataclass(frozen=True)
class TransactionInsertRequest:  # pylint: disable=too-many-instance-attributes
    """Input payload for one transaction row insert.

    Attributes mirror `TransactionRecord` except generated identifiers and
    timestamps, which the db layer assigns.
    """

    entity_id: str
    security_class_id: str
    transaction_type: str
    reason_code: str | None
    quantity: int
    amount_paid_per_security: Decimal | None
    amount_unpaid_per_security: Decimal | None
    transfer_price_per_security: Decimal | None
    currency_code: str
    total_amount_paid: Decimal | None
    total_amount_unpaid: Decimal | None
    total_transfer_amount: Decimal | None
    from_member_id: str | None
    to_member_id: str | None
    tranche_number: str | None
    tranche_sequence: int | None
    posted_date: date
    settlement_date: date | None
    status: str
    reference: str | None
    description: str | None
    certificate_number: str | None
    created_by: str


@dataclass(frozen=True)
class TransactionListFilters:
    """Filters for transaction list reads.

    Attributes:
        entity_id: Owning entity identifier.
        member_id: Optional member appearing on either side.
        transaction_type: Optional transaction type.
        security_class_id: Optional security class identifier.
    """

    entity_id: str
    member_id: str | None = None
    transaction_type: str | None = None
    security_class_id: str | None = None


@dataclass(frozen=True)
class AuditLogRecord:
    """Persistence model for one append-only audit log row.

    Attributes:
        audit_log_id: Monotonic audit row identifier.
        entity_id: Owning entity identifier.
        actor_id: Attributed actor.
        action: Audit action value.
        table_name: Audited table name.
        record_id: Audited record identifier.
        field_name: Changed field for per-field update rows.
        old_value: JSON-compatible value before the mutation.
        new_value: JSON-compatible value after the mutation.
        event_metadata: Optional JSON-compatible metadata.
        created_at_utc: Audit timestamp in UTC.
    """

    audit_log_id: int
    entity_id: str
    actor_id: str
    action: str
    table_name: str
    record_id: str
    field_name: str | None
    old_value: Any
    new_value: Any
    event_metadata: dict[str, Any] | None
    created_at_utc: datetime


@dataclass(frozen=True)
class AuditLogInsertRequest:
    """Input payload for one audit log append.

    Attributes:
        entity_id: Owning entity identifier.
        actor_id: Attributed actor.
        action: Audit action value.
        table_name: Audited table name.
        record_id: Audited record identifier.
        field_name: Optional changed field name.
        old_value: JSON-compatible value before the mutation.
        new_value: JSON-compatible value after the mutation.
        event_metadata: Optional JSON-compatible metadata.
    """

    entity_id: str
    actor_id: str
    action: str
    table_name: str
    record_id: str
    field_name: str | None
    old_value: Any
    new_value: Any
    event_metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class AuditLogFilters:
    """Filters for audit log reads and exports.

    Attributes:
        entity_id: Owning entity identifier.
        start_at_utc: Optional inclusive lower timestamp bound.
        end_at_utc: Optional inclusive upper timestamp bound.
        actor_id: Optional actor filter.
        table_name: Optional table filter.
        record_id: Optional record filter.
        action: Optional action filter.
    """

    entity_id: str
    start_at_utc: datetime | None = None
    end_at_utc: datetime | None = None
    actor_id: str | None = None
    table_name: str | None = None
    record_id: str | None = None
    action: str | None = None


class AuditSinkPort(Protocol):
    """Port definition for append-only audit writes inside an active unit of work."""

    def db_audit_log_insert(self, request: AuditLogInsertRequest) -> AuditLogRecord:
        """Append one audit row.

        Args:
            request: Audit row payload.

        Returns:
            AuditLogRecord: Persisted audit row.

        Raises:
            PersistenceFailureError: Raised when the write fails.
        """


class LedgerUnitOfWorkPort(AuditSinkPort, Protocol):
    """Port definition for reads and writes sharing one atomic database transaction."""

    def db_entity_get(self, entity_id: str) -> EntityRecord | None:
        """Fetch one entity by id."""

    def db_security_class_lock(self, security_class_id: str) -> None:
        """Serialize writers on one security class until the unit of work ends."""

    def db_security_class_get(self, entity_id: str, security_class_id: str) -> SecurityClassRecord | None:
        """Fetch one security class scoped to its entity."""

    def db_security_class_set_archived(self, security_class_id: str, is_archived: bool) -> SecurityClassRecord:
        """Toggle the archived flag and return the updated row."""

    def db_member_get(self, member_id: str) -> MemberRecord | None:
        """Fetch one member by id."""

    def db_member_find_existing_ids(self, entity_id: str, member_ids: set[str]) -> set[str]:
        """Return the subset of member ids that exist within the entity."""

    def db_member_count_transaction_references(self, member_id: str) -> int:
        """Count transactions referencing the member on either side."""

    def db_member_delete(self, member_id: str) -> None:
        """Delete one member row."""

    def db_transaction_insert(self, request: TransactionInsertRequest) -> TransactionRecord:
        """Insert one transaction and return the persisted row."""

    def db_transaction_get(self, transaction_id: str) -> TransactionRecord | None:
        """Fetch one transaction by id inside the unit of work."""

    def db_transaction_update(self, transaction_id: str, values: dict[str, Any]) -> TransactionRecord:
        """Apply column values to one transaction and return the updated row."""

    def db_transaction_delete(self, transaction_id: str) -> None:
        """Delete one transaction row."""


class LedgerStorePort(Protocol):
    """Port definition for ledger persistence and read models."""

    def db_unit_of_work(self) -> AbstractContextManager[LedgerUnitOfWorkPort]:
        """Open one atomic unit of work; commit on clean exit, roll back on error."""

    def db_entity_get(self, entity_id: str) -> EntityRecord | None:
        """Fetch one entity by id."""

    def db_transaction_get_by_id(self, transaction_id: str) -> TransactionRecord | None:
        """Fetch one transaction by id."""

    def db_transaction_list(self, filters: TransactionListFilters, limit: int, offset: int) -> list[TransactionRecord]:
        """List transactions by settlement date, newest first."""

    def db_security_class_list_for_entity(self, entity_id: str, include_archived: bool) -> list[SecurityClassRecord]:
        """List security classes for one entity ordered by name."""

    def db_transaction_list_completed(
        self,
        entity_id: str,
        security_class_id: str | None = None,
    ) -> list[TransactionRecord]:
        """List Completed transactions in deterministic posting order."""

    def db_register_counts(self, entity_id: str) -> RegisterCountsRecord:
        """Count members, security classes, and transactions of one entity."""


class AuditLogReadPort(Protocol):
    """Port definition for audit log queries."""

    def db_audit_log_list(self, filters: AuditLogFilters, limit: int, offset: int) -> list[AuditLogRecord]:
        """List audit rows newest first."""

    def db_audit_log_count(self, filters: AuditLogFilters) -> int:
        """Count audit rows matching filters."""

    def db_audit_log_iter(self, filters: AuditLogFilters) -> Iterator[AuditLogRecord]:
        """Stream every audit row matching filters, newest first."""
