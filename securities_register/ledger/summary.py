"""Pure holdings aggregation over Completed register transactions.

Nothing in this module reads or writes storage. Every function folds the
transaction list it is handed, so a summary can be recomputed at any time and
doubles as a reconciliation check against stored totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, localcontext
from typing import Iterable

from securities_register.db import SecurityClassRecord, TransactionRecord
from securities_register.domain import TransactionStatus, TransactionType

SUMMARY_UNKNOWN_TRANCHE = "Unknown"

_SUMMARY_DECIMAL_PRECISION = 60
_SUMMARY_ZERO = Decimal("0")


@dataclass(frozen=True)
class TrancheSummary:  # pylint: disable=too-many-instance-attributes
    """Aggregated ISSUE activity for one tranche.

    Attributes:
        tranche_number: Tranche identifier, or `Unknown` for untagged issues.
        first_transaction_id: First ISSUE folded into the tranche.
        issue_date: Posted date of the first ISSUE folded into the tranche.
        quantity: Total issued quantity.
        amount_paid_per_security: Paid amount per security of the first ISSUE.
        amount_unpaid_per_security: Unpaid amount per security of the first ISSUE.
        total_amount_paid: Sum of ISSUE paid totals.
        total_amount_unpaid: Sum of ISSUE unpaid totals.
        currency_code: Summary currency.
        reference: Reference of the first ISSUE.
        description: Description of the first ISSUE.
        allocation_count: Number of ISSUE records folded into the tranche.
    """

    tranche_number: str
    first_transaction_id: str
    issue_date: date
    quantity: int
    amount_paid_per_security: Decimal | None
    amount_unpaid_per_security: Decimal | None
    total_amount_paid: Decimal
    total_amount_unpaid: Decimal
    currency_code: str
    reference: str | None
    description: str | None
    allocation_count: int


@dataclass(frozen=True)
class SecurityClassSummary:  # pylint: disable=too-many-instance-attributes
    """Aggregated holdings view for one security class.

    Attributes:
        security_class_id: Security class identifier.
        name: Class name.
        symbol: Optional symbol.
        description: Optional description.
        voting_rights: Voting rights flag.
        dividend_rights: Dividend rights flag.
        is_active: Active flag.
        is_archived: Archived flag.
        total_quantity: ISSUE quantity minus CANCELLATION quantity.
        total_amount_paid: ISSUE paid totals minus CANCELLATION paid totals.
        total_amount_unpaid: ISSUE unpaid totals minus CANCELLATION unpaid totals.
        currency_code: Summary currency.
        tranche_count: Distinct tagged tranche numbers across ISSUE rows.
        member_count: Distinct destination members across ISSUE and TRANSFER rows.
        tranches: Tranche groups in first-seen order.
    """

    security_class_id: str
    name: str
    symbol: str | None
    description: str | None
    voting_rights: bool
    dividend_rights: bool
    is_active: bool
    is_archived: bool
    total_quantity: int
    total_amount_paid: Decimal
    total_amount_unpaid: Decimal
    currency_code: str
    tranche_count: int
    member_count: int
    tranches: tuple[TrancheSummary, ...]


@dataclass
class _TrancheAccumulator:
    first: TransactionRecord
    quantity: int = 0
    total_amount_paid: Decimal = _SUMMARY_ZERO
    total_amount_unpaid: Decimal = _SUMMARY_ZERO
    allocation_count: int = 0


def summary_fold_security_class(
    security_class: SecurityClassRecord,
    transactions: Iterable[TransactionRecord],
    currency_code: str,
) -> SecurityClassSummary:
    """Fold one security class's transactions into its summary.

    Only Completed transactions of this class are counted. Totals are
    order-independent; tranche first-seen attributes follow input order.

    Args:
        security_class: Security class being summarized.
        transactions: Candidate transactions, normally in posting order.
        currency_code: Currency reported on the summary.

    Returns:
        SecurityClassSummary: Deterministic aggregate view.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    total_quantity = 0
    total_amount_paid = _SUMMARY_ZERO
    total_amount_unpaid = _SUMMARY_ZERO
    member_ids: set[str] = set()
    tranche_numbers: set[str] = set()
    tranche_groups: dict[str, _TrancheAccumulator] = {}

    with localcontext() as context:
        context.prec = _SUMMARY_DECIMAL_PRECISION

        for transaction in transactions:
            if transaction.security_class_id != security_class.security_class_id:
                continue
            if transaction.status != TransactionStatus.COMPLETED.value:
                continue

            if transaction.transaction_type == TransactionType.ISSUE.value:
                total_quantity += transaction.quantity
                total_amount_paid += transaction.total_amount_paid or _SUMMARY_ZERO
                total_amount_unpaid += transaction.total_amount_unpaid or _SUMMARY_ZERO
                if transaction.to_member_id is not None:
                    member_ids.add(transaction.to_member_id)
                if transaction.tranche_number:
                    tranche_numbers.add(transaction.tranche_number)

                tranche_key = transaction.tranche_number or SUMMARY_UNKNOWN_TRANCHE
                accumulator = tranche_groups.setdefault(tranche_key, _TrancheAccumulator(first=transaction))
                accumulator.quantity += transaction.quantity
                accumulator.total_amount_paid += transaction.total_amount_paid or _SUMMARY_ZERO
                accumulator.total_amount_unpaid += transaction.total_amount_unpaid or _SUMMARY_ZERO
                accumulator.allocation_count += 1
            elif transaction.transaction_type == TransactionType.TRANSFER.value:
                # Source members are not considered; a holder who only ever transferred out is not counted.
                if transaction.to_member_id is not None:
                    member_ids.add(transaction.to_member_id)
            elif transaction.transaction_type == TransactionType.CANCELLATION.value:
                total_quantity -= transaction.quantity
                total_amount_paid -= transaction.total_amount_paid or _SUMMARY_ZERO
                total_amount_unpaid -= transaction.total_amount_unpaid or _SUMMARY_ZERO

    return SecurityClassSummary(
        security_class_id=security_class.security_class_id,
        name=security_class.name,
        symbol=security_class.symbol,
        description=security_class.description,
        voting_rights=security_class.voting_rights,
        dividend_rights=security_class.dividend_rights,
        is_active=security_class.is_active,
        is_archived=security_class.is_archived,
        total_quantity=total_quantity,
        total_amount_paid=total_amount_paid,
        total_amount_unpaid=total_amount_unpaid,
        currency_code=currency_code,
        tranche_count=len(tranche_numbers),
        member_count=len(member_ids),
        tranches=tuple(
            TrancheSummary(
                tranche_number=tranche_number,
                first_transaction_id=accumulator.first.transaction_id,
                issue_date=accumulator.first.posted_date,
                quantity=accumulator.quantity,
                amount_paid_per_security=accumulator.first.amount_paid_per_security,
                amount_unpaid_per_security=accumulator.first.amount_unpaid_per_security,
                total_amount_paid=accumulator.total_amount_paid,
                total_amount_unpaid=accumulator.total_amount_unpaid,
                currency_code=currency_code,
                reference=accumulator.first.reference,
                description=accumulator.first.description,
                allocation_count=accumulator.allocation_count,
            )
            for tranche_number, accumulator in tranche_groups.items()
        ),
    )


def summary_build(
    security_classes: Iterable[SecurityClassRecord],
    transactions: Iterable[TransactionRecord],
    currency_code: str,
    include_archived: bool = False,
) -> list[SecurityClassSummary]:
    """Build one summary per security class, ordered by class name.

    Args:
        security_classes: Candidate security classes for one entity.
        transactions: Transactions for the same entity, in posting order.
        currency_code: Currency reported on every summary.
        include_archived: Whether archived classes are summarized.

    Returns:
        list[SecurityClassSummary]: Summaries ordered by name then id.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    transactions_by_class: dict[str, list[TransactionRecord]] = {}
    for transaction in transactions:
        transactions_by_class.setdefault(transaction.security_class_id, []).append(transaction)

    selected_classes = sorted(
        (security_class for security_class in security_classes if include_archived or not security_class.is_archived),
        key=lambda security_class: (security_class.name, security_class.security_class_id),
    )
    return [
        summary_fold_security_class(
            security_class=security_class,
            transactions=transactions_by_class.get(security_class.security_class_id, []),
            currency_code=currency_code,
        )
        for security_class in selected_classes
    ]


def summary_fold_member_holdings(transactions: Iterable[TransactionRecord]) -> dict[str, int]:
    """Derive per-member holding quantities from Completed transactions.

    ISSUE credits the destination; TRANSFER debits the source and credits the
    destination; CANCELLATION and REDEMPTION debit the source. Capital calls
    and returns of capital do not move quantity.

    Args:
        transactions: Transactions for one security class.

    Returns:
        dict[str, int]: Non-zero holdings keyed by member id, sorted by member id.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    holdings: dict[str, int] = {}
    for transaction in transactions:
        if transaction.status != TransactionStatus.COMPLETED.value:
            continue
        transaction_type = transaction.transaction_type
        if transaction_type in (TransactionType.ISSUE.value, TransactionType.TRANSFER.value):
            if transaction.to_member_id is not None:
                holdings[transaction.to_member_id] = holdings.get(transaction.to_member_id, 0) + transaction.quantity
        if transaction_type in (
            TransactionType.TRANSFER.value,
            TransactionType.CANCELLATION.value,
            TransactionType.REDEMPTION.value,
        ):
            if transaction.from_member_id is not None:
                holdings[transaction.from_member_id] = holdings.get(transaction.from_member_id, 0) - transaction.quantity
    return {member_id: quantity for member_id, quantity in sorted(holdings.items()) if quantity != 0}
