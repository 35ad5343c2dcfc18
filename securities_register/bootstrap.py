"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from securities_register.api import create_api_application
from securities_register.audit import AuditLogService
from securities_register.config import AppSettings, config_build_ledger_config, config_load_settings
from securities_register.db import (
    SQLAlchemyAuditLogStore,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyLedgerStore,
    db_create_engine,
)
from securities_register.ledger import RegistryService, TransactionLedgerService


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    ledger_store = SQLAlchemyLedgerStore(engine=engine)
    return create_api_application(
        settings=resolved_settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        ledger_service=TransactionLedgerService(
            store=ledger_store,
            config=config_build_ledger_config(resolved_settings),
        ),
        registry_service=RegistryService(store=ledger_store),
        audit_service=AuditLogService(
            repository=SQLAlchemyAuditLogStore(engine=engine),
            default_limit=resolved_settings.api_default_limit,
            max_limit=resolved_settings.api_max_limit,
        ),
    )


def bootstrap_create_ledger_service(settings: AppSettings | None = None) -> TransactionLedgerService:
    """Build the ledger service for non-HTTP surfaces such as reconciliation.

    Returns:
        TransactionLedgerService: Ledger service bound to the configured database.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    return TransactionLedgerService(
        store=SQLAlchemyLedgerStore(engine=engine),
        config=config_build_ledger_config(resolved_settings),
    )
