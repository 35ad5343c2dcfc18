"""Ledger error taxonomy shared by the ledger, audit, db, and api layers.

Every error carries a stable `code` so transport layers can map failures to
responses without inspecting message text.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger domain failures."""

    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransactionShapeError(LedgerError):
    """Raised when a transaction violates a structural rule for its type.

    Attributes:
        rule: Stable identifier of the violated rule.
    """

    code = "INVALID_TRANSACTION_SHAPE"

    def __init__(self, rule: str, message: str):
        super().__init__(message)
        self.rule = rule


class UnauthorizedError(LedgerError):
    """Raised when a mutation has no attributable actor."""

    code = "UNAUTHORIZED"


class EntityNotFoundError(LedgerError, LookupError):
    """Raised when the owning entity does not exist."""

    code = "ENTITY_NOT_FOUND"


class SecurityClassNotFoundError(LedgerError, LookupError):
    """Raised when the security class does not exist within the entity."""

    code = "SECURITY_CLASS_NOT_FOUND"


class SecurityClassArchivedError(LedgerError):
    """Raised when a write targets an archived security class."""

    code = "SECURITY_CLASS_ARCHIVED"


class MemberNotFoundError(LedgerError, LookupError):
    """Raised when one or more referenced members do not exist.

    Attributes:
        missing_member_ids: Sorted member ids that could not be resolved.
    """

    code = "MEMBER_NOT_FOUND"

    def __init__(self, missing_member_ids: list[str]):
        super().__init__(f"member(s) not found: {', '.join(missing_member_ids)}")
        self.missing_member_ids = missing_member_ids


class MemberInUseError(LedgerError):
    """Raised when deleting a member that is referenced by transactions."""

    code = "MEMBER_IN_USE"


class TransactionNotFoundError(LedgerError, LookupError):
    """Raised when the transaction id does not resolve."""

    code = "TRANSACTION_NOT_FOUND"


class PersistenceFailureError(LedgerError):
    """Raised when the storage layer fails and the unit of work was rolled back."""

    code = "PERSISTENCE_FAILURE"


__all__ = [
    "LedgerError",
    "InvalidTransactionShapeError",
    "UnauthorizedError",
    "EntityNotFoundError",
    "SecurityClassNotFoundError",
    "SecurityClassArchivedError",
    "MemberNotFoundError",
    "MemberInUseError",
    "TransactionNotFoundError",
    "PersistenceFailureError",
]
