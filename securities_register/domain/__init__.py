"""Domain models used across application layer boundaries."""

from .errors import (
	EntityNotFoundError,
	InvalidTransactionShapeError,
	LedgerError,
	MemberInUseError,
	MemberNotFoundError,
	PersistenceFailureError,
	SecurityClassArchivedError,
	SecurityClassNotFoundError,
	TransactionNotFoundError,
	UnauthorizedError,
)
from .models import AuditAction, AuditTableName, HealthStatus, MemberType, TransactionStatus, TransactionType
from .transaction_reasons import domain_is_known_reason_code, domain_reason_label

__all__ = [
	"AuditAction",
	"AuditTableName",
	"HealthStatus",
	"MemberType",
	"TransactionStatus",
	"TransactionType",
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
	"domain_is_known_reason_code",
	"domain_reason_label",
]
