"""Health endpoint router for the register service and its database."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from securities_register.db import DatabaseHealthPort

_API_SERVICE_NAME = "securities-register"


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Create the `/health` router.

    A reachable database yields HTTP 200; a connectivity failure yields 503
    with the service itself still reported as up.

    Args:
        db_health_service: Database connectivity probe.

    Returns:
        APIRouter: Router exposing `/health`.

    Raises:
        ValueError: Raised when db_health_service is None.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    def _api_health_payload(overall: str, database: str, detail: str) -> dict[str, str]:
        return {
            "status": overall,
            "service": _API_SERVICE_NAME,
            "app": "up",
            "database": database,
            "detail": detail,
            "target": db_health_service.db_connection_label(),
        }

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            return JSONResponse(
                content=_api_health_payload("degraded", "down", str(error)),
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return JSONResponse(
            content=_api_health_payload("ok", db_health.status, db_health.detail),
            status_code=status.HTTP_200_OK,
        )

    return router
