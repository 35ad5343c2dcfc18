"""Ledger layer package for register writes, validation, and holdings aggregation."""

from .decimal_math import ledger_compute_total, ledger_parse_amount
from .interfaces import (
	BulkCreateResult,
	BulkLineItem,
	BulkTransactionCreateRequest,
	RegisterOverview,
	TransactionCreateRequest,
)
from .registry import RegistryService
from .summary import (
	SUMMARY_UNKNOWN_TRANCHE,
	SecurityClassSummary,
	TrancheSummary,
	summary_build,
	summary_fold_member_holdings,
	summary_fold_security_class,
)
from .validator import VALIDATOR_MEMBER_SIDE_RULES, validator_check_references, validator_check_shape
from .writer import LEDGER_CORRECTABLE_FIELDS, TransactionLedgerService

__all__ = [
	"BulkCreateResult",
	"BulkLineItem",
	"BulkTransactionCreateRequest",
	"RegisterOverview",
	"TransactionCreateRequest",
	"LEDGER_CORRECTABLE_FIELDS",
	"TransactionLedgerService",
	"RegistryService",
	"SUMMARY_UNKNOWN_TRANCHE",
	"SecurityClassSummary",
	"TrancheSummary",
	"summary_build",
	"summary_fold_member_holdings",
	"summary_fold_security_class",
	"VALIDATOR_MEMBER_SIDE_RULES",
	"validator_check_references",
	"validator_check_shape",
	"ledger_compute_total",
	"ledger_parse_amount",
]
