"""Typed request and result contracts for ledger-layer operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from securities_register.db import TransactionRecord


@dataclass(frozen=True)
class TransactionCreateRequest:  # pylint: disable=too-many-instance-attributes
    """Input contract for one register transaction create.

    Attributes:
        entity_id: Owning entity identifier.
        security_class_id: Target security class identifier.
        transaction_type: Transaction type value.
        quantity: Non-negative security count.
        amount_paid_per_security: Optional paid amount per security.
        amount_unpaid_per_security: Optional unpaid amount per security.
        transfer_price_per_security: Optional consideration per security (TRANSFER only).
        currency_code: Optional currency code; entity or process default applies when absent.
        from_member_id: Source member, required or forbidden by type.
        to_member_id: Destination member, required or forbidden by type.
        tranche_number: Optional tranche identifier.
        tranche_sequence: Optional position within the tranche.
        posted_date: Optional posting date; defaults to the current UTC date.
        settlement_date: Optional settlement date; defaults to the posted date.
        status: Optional status value; defaults to `Completed`.
        reason_code: Optional holding-adjustment reason code.
        reference: Optional external reference.
        description: Optional description.
        certificate_number: Optional certificate number.
    """

    entity_id: str
    security_class_id: str
    transaction_type: str
    quantity: int
    amount_paid_per_security: Decimal | None = None
    amount_unpaid_per_security: Decimal | None = None
    transfer_price_per_security: Decimal | None = None
    currency_code: str | None = None
    from_member_id: str | None = None
    to_member_id: str | None = None
    tranche_number: str | None = None
    tranche_sequence: int | None = None
    posted_date: date | None = None
    settlement_date: date | None = None
    status: str | None = None
    reason_code: str | None = None
    reference: str | None = None
    description: str | None = None
    certificate_number: str | None = None


@dataclass(frozen=True)
class BulkLineItem:
    """One line of a bulk create request.

    Attributes:
        quantity: Non-negative security count.
        amount_paid_per_security: Optional paid amount per security.
        amount_unpaid_per_security: Optional unpaid amount per security.
        from_member_id: Optional source member.
        to_member_id: Optional destination member.
        reference: Optional line reference; overrides the shared reference.
        description: Optional line description; overrides the shared description.
        tranche_number: Optional tranche identifier.
        tranche_sequence: Optional position within the tranche.
    """

    quantity: int
    amount_paid_per_security: Decimal | None = None
    amount_unpaid_per_security: Decimal | None = None
    from_member_id: str | None = None
    to_member_id: str | None = None
    reference: str | None = None
    description: str | None = None
    tranche_number: str | None = None
    tranche_sequence: int | None = None


@dataclass(frozen=True)
class BulkTransactionCreateRequest:
    """Input contract for an all-or-nothing batch of same-type transactions.

    Attributes:
        entity_id: Owning entity identifier.
        security_class_id: Shared security class identifier.
        transaction_type: Shared transaction type value.
        line_items: Ordered line items.
        posted_date: Optional shared posting date.
        currency_code: Optional shared currency code.
        reason_code: Optional shared reason code.
        reference: Optional shared reference.
        description: Optional shared description.
    """

    entity_id: str
    security_class_id: str
    transaction_type: str
    line_items: tuple[BulkLineItem, ...]
    posted_date: date | None = None
    currency_code: str | None = None
    reason_code: str | None = None
    reference: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class BulkCreateResult:
    """Output of a successful bulk create.

    Attributes:
        created: Persisted transactions in line-item order.
        count: Number of persisted transactions.
    """

    created: tuple[TransactionRecord, ...]
    count: int


@dataclass(frozen=True)
class RegisterOverview:
    """Dashboard totals for one entity's register.

    Attributes:
        entity_id: Owning entity identifier.
        total_members: Members registered under the entity.
        total_security_classes: Security classes in any archive state.
        active_security_classes: Security classes open to new transactions.
        archived_security_classes: Archived security classes.
        total_transactions: Transactions in any status.
        recent_transactions: Latest transactions by settlement date, newest first.
    """

    entity_id: str
    total_members: int
    total_security_classes: int
    active_security_classes: int
    archived_security_classes: int
    total_transactions: int
    recent_transactions: tuple[TransactionRecord, ...]
