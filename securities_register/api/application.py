"""FastAPI application factory for the securities register service."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from securities_register.audit import AuditLogService
from securities_register.config import AppSettings
from securities_register.db import DatabaseHealthPort
from securities_register.ledger import RegistryService, TransactionLedgerService

from .routers import (
    api_create_audit_router,
    api_create_health_router,
    api_create_members_router,
    api_create_register_router,
    api_create_securities_router,
    api_create_transactions_router,
)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    ledger_service: TransactionLedgerService,
    registry_service: RegistryService,
    audit_service: AuditLogService,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        ledger_service: Transaction ledger service.
        registry_service: Registry service for member deletion and archive toggles.
        audit_service: Audit log query and export service.

    Returns:
        FastAPI: Framework application instance with all routers mounted.

    Raises:
        RuntimeError: Raised if application initialization fails.
    """
    application = FastAPI(title="Securities Register")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        return {
            "service": "securities-register",
            "status": "ready",
            "environment": settings.environment_name,
        }

    @application.exception_handler(RequestValidationError)
    async def api_request_validation_handler(_: Request, error: RequestValidationError) -> JSONResponse:
        """Return request validation failures in the shared error envelope."""

        payload = {
            "status": "error",
            "code": "INVALID_REQUEST",
            "message": "request validation failed",
            "errors": [
                {"loc": [str(part) for part in detail.get("loc", ())], "msg": str(detail.get("msg", ""))}
                for detail in error.errors()
            ],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(api_create_transactions_router(settings=settings, ledger_service=ledger_service))
    application.include_router(
        api_create_securities_router(ledger_service=ledger_service, registry_service=registry_service)
    )
    application.include_router(api_create_register_router(ledger_service=ledger_service))
    application.include_router(api_create_members_router(registry_service=registry_service))
    application.include_router(api_create_audit_router(settings=settings, audit_service=audit_service))

    return application
