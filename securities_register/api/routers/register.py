"""Register dashboard router for per-entity counts and recent activity."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from securities_register.domain import LedgerError
from securities_register.ledger import TransactionLedgerService

from ..errors import api_error_response
from ..serializers import api_serialize_register_overview


def api_create_register_router(ledger_service: TransactionLedgerService) -> APIRouter:
    """Create register router exposing the entity dashboard.

    Args:
        ledger_service: Ledger service providing register counts.

    Returns:
        APIRouter: Router exposing `/register` APIs.

    Raises:
        ValueError: Raised when ledger_service is None.
    """

    if ledger_service is None:
        raise ValueError("ledger_service must not be None")

    router = APIRouter(prefix="/register", tags=["register"])

    @router.get("/summary")
    def api_register_summary(entity_id: str = Query()) -> JSONResponse:
        try:
            overview = ledger_service.ledger_register_overview(entity_id=entity_id)
        except LedgerError as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_register_overview(overview), status_code=status.HTTP_200_OK)

    return router
