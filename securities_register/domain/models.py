"""Typed domain models shared across runtime layers.

This module provides the enumerations and simple data contracts used for
cross-layer communication.
"""

from dataclasses import dataclass
from enum import Enum


class TransactionType(str, Enum):
    """Register transaction types."""

    ISSUE = "ISSUE"
    TRANSFER = "TRANSFER"
    CANCELLATION = "CANCELLATION"
    REDEMPTION = "REDEMPTION"
    RETURN_OF_CAPITAL = "RETURN_OF_CAPITAL"
    CAPITAL_CALL = "CAPITAL_CALL"


class TransactionStatus(str, Enum):
    """Register transaction lifecycle status."""

    COMPLETED = "Completed"
    PENDING = "Pending"
    REVERSED = "Reversed"


class MemberType(str, Enum):
    """Holder classification for register members."""

    INDIVIDUAL = "Individual"
    JOINT = "Joint"
    ORGANIZATION = "Organization"


class AuditAction(str, Enum):
    """Audit log action markers."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ARCHIVE = "ARCHIVE"
    UNARCHIVE = "UNARCHIVE"


class AuditTableName(str, Enum):
    """Audited table names recorded on audit log rows."""

    MEMBER = "Member"
    SECURITY_CLASS = "SecurityClass"
    TRANSACTION = "Transaction"


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str
