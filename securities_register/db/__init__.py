"""Database layer package for all SQL and persistence boundaries."""

from .audit_store import SQLAlchemyAuditLogStore
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	AuditLogFilters,
	AuditLogInsertRequest,
	AuditLogReadPort,
	AuditLogRecord,
	AuditSinkPort,
	DatabaseHealthPort,
	EntityRecord,
	LedgerStorePort,
	LedgerUnitOfWorkPort,
	MemberRecord,
	RegisterCountsRecord,
	SecurityClassRecord,
	TransactionInsertRequest,
	TransactionListFilters,
	TransactionRecord,
)
from .ledger_store import SQLAlchemyLedgerStore, SQLAlchemyLedgerUnitOfWork
from .registry_store import SQLAlchemyRegistryStore
from .session import db_build_advisory_lock_keys, db_create_engine

__all__ = [
	"AuditLogFilters",
	"AuditLogInsertRequest",
	"AuditLogReadPort",
	"AuditLogRecord",
	"AuditSinkPort",
	"DatabaseHealthPort",
	"EntityRecord",
	"LedgerStorePort",
	"LedgerUnitOfWorkPort",
	"MemberRecord",
	"RegisterCountsRecord",
	"SecurityClassRecord",
	"TransactionInsertRequest",
	"TransactionListFilters",
	"TransactionRecord",
	"SQLAlchemyAuditLogStore",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyLedgerStore",
	"SQLAlchemyLedgerUnitOfWork",
	"SQLAlchemyRegistryStore",
	"db_build_advisory_lock_keys",
	"db_create_engine",
]
