"""Audit layer package for append-only change recording and audit reads."""

from .diff import audit_changed_fields, audit_jsonable, audit_value_changed
from .recorder import AuditRecorder
from .service import AUDIT_CSV_HEADER, AuditLogService, AuditQueryResult

__all__ = [
	"AUDIT_CSV_HEADER",
	"AuditLogService",
	"AuditQueryResult",
	"AuditRecorder",
	"audit_changed_fields",
	"audit_jsonable",
	"audit_value_changed",
]
