"""Structural and referential validation shared by every ledger write path."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable

from securities_register.db import LedgerUnitOfWorkPort, SecurityClassRecord
from securities_register.domain import (
    InvalidTransactionShapeError,
    MemberNotFoundError,
    SecurityClassArchivedError,
    SecurityClassNotFoundError,
    TransactionStatus,
    TransactionType,
    domain_is_known_reason_code,
)

# (from member required, to member required); False means the side must be absent.
VALIDATOR_MEMBER_SIDE_RULES = MappingProxyType(
    {
        TransactionType.ISSUE.value: (False, True),
        TransactionType.TRANSFER.value: (True, True),
        TransactionType.CANCELLATION.value: (True, False),
        TransactionType.REDEMPTION.value: (True, False),
        TransactionType.RETURN_OF_CAPITAL.value: (True, False),
        TransactionType.CAPITAL_CALL.value: (True, False),
    }
)

_VALIDATOR_STATUSES = frozenset(status.value for status in TransactionStatus)


def validator_check_shape(  # pylint: disable=too-many-arguments
    transaction_type: str,
    from_member_id: str | None,
    to_member_id: str | None,
    quantity: int,
    transfer_price_per_security: object = None,
    status: str | None = None,
    reason_code: str | None = None,
) -> None:
    """Enforce per-type structural rules for one transaction.

    Args:
        transaction_type: Transaction type value.
        from_member_id: Source member identifier or None.
        to_member_id: Destination member identifier or None.
        quantity: Security count.
        transfer_price_per_security: Transfer price or None.
        status: Status value or None.
        reason_code: Reason code or None.

    Returns:
        None: Returns when the shape is valid.

    Raises:
        InvalidTransactionShapeError: Raised with the violated rule identifier.
    """

    member_rule = VALIDATOR_MEMBER_SIDE_RULES.get(transaction_type)
    if member_rule is None:
        raise InvalidTransactionShapeError(
            "UNKNOWN_TRANSACTION_TYPE",
            f"transaction type {transaction_type!r} is not supported",
        )

    from_required, to_required = member_rule
    _validator_check_member_side(transaction_type, "FROM", from_member_id, from_required)
    _validator_check_member_side(transaction_type, "TO", to_member_id, to_required)

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise InvalidTransactionShapeError(
            "QUANTITY_MUST_BE_NON_NEGATIVE_INTEGER",
            "quantity must be a non-negative integer",
        )

    if transfer_price_per_security is not None and transaction_type != TransactionType.TRANSFER.value:
        raise InvalidTransactionShapeError(
            "TRANSFER_PRICE_ONLY_ON_TRANSFER",
            "transfer_price_per_security is only allowed on TRANSFER transactions",
        )

    if status is not None and status not in _VALIDATOR_STATUSES:
        raise InvalidTransactionShapeError("UNKNOWN_STATUS", f"status {status!r} is not supported")

    if reason_code is not None and not domain_is_known_reason_code(reason_code):
        raise InvalidTransactionShapeError("UNKNOWN_REASON_CODE", f"reason code {reason_code!r} is not recognised")


def _validator_check_member_side(
    transaction_type: str,
    side: str,
    member_id: str | None,
    required: bool,
) -> None:
    if required and member_id is None:
        raise InvalidTransactionShapeError(
            f"{transaction_type}_{side}_MEMBER_REQUIRED",
            f"{transaction_type} requires {side.lower()}_member_id",
        )
    if not required and member_id is not None:
        raise InvalidTransactionShapeError(
            f"{transaction_type}_{side}_MEMBER_MUST_BE_ABSENT",
            f"{transaction_type} must not set {side.lower()}_member_id",
        )


def validator_check_references(
    unit_of_work: LedgerUnitOfWorkPort,
    entity_id: str,
    security_class_id: str,
    member_ids: Iterable[str | None],
) -> SecurityClassRecord:
    """Enforce referential rules inside an open unit of work.

    The security class must exist within the entity and must not be archived;
    every referenced member must exist within the entity. Members are resolved
    in one batch lookup.

    Args:
        unit_of_work: Open ledger unit of work.
        entity_id: Owning entity identifier.
        security_class_id: Target security class identifier.
        member_ids: Referenced member ids; None entries are ignored.

    Returns:
        SecurityClassRecord: Resolved security class.

    Raises:
        SecurityClassNotFoundError: Raised when the class does not exist in the entity.
        SecurityClassArchivedError: Raised when the class is archived.
        MemberNotFoundError: Raised when any referenced member is missing.
    """

    security_class = unit_of_work.db_security_class_get(entity_id, security_class_id)
    if security_class is None:
        raise SecurityClassNotFoundError(f"security class {security_class_id} not found")
    if security_class.is_archived:
        raise SecurityClassArchivedError(
            f"security class {security_class_id} is archived and cannot accept transactions"
        )

    requested_member_ids = {member_id for member_id in member_ids if member_id is not None}
    if requested_member_ids:
        existing_member_ids = unit_of_work.db_member_find_existing_ids(entity_id, requested_member_ids)
        missing_member_ids = sorted(requested_member_ids - existing_member_ids)
        if missing_member_ids:
            raise MemberNotFoundError(missing_member_ids)
    return security_class
