"""Security class API router composition for summaries and archive toggles."""

from __future__ import annotations

from fastapi import APIRouter, Header, Query, status
from fastapi.responses import JSONResponse

from securities_register.domain import LedgerError
from securities_register.ledger import RegistryService, TransactionLedgerService

from ..errors import api_error_response
from ..serializers import api_serialize_security_summary


def api_create_securities_router(
    ledger_service: TransactionLedgerService,
    registry_service: RegistryService,
) -> APIRouter:
    """Create securities router with summary and archive endpoints.

    Args:
        ledger_service: Ledger service providing holdings summaries.
        registry_service: Registry service performing audited archive toggles.

    Returns:
        APIRouter: Router exposing `/securities` APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if ledger_service is None:
        raise ValueError("ledger_service must not be None")
    if registry_service is None:
        raise ValueError("registry_service must not be None")

    router = APIRouter(prefix="/securities", tags=["securities"])

    @router.get("/summary")
    def api_security_summary(
        entity_id: str = Query(),
        include_archived: bool = Query(default=False),
    ) -> JSONResponse:
        """Return per-class holdings summaries derived from Completed transactions.

        Args:
            entity_id: Owning entity identifier.
            include_archived: Whether archived classes are included.

        Returns:
            JSONResponse: Summary list ordered by class name.
        """

        try:
            summaries = ledger_service.ledger_security_summary(entity_id=entity_id, include_archived=include_archived)
        except LedgerError as error:
            return api_error_response(error)
        payload = {
            "entity_id": entity_id,
            "include_archived": include_archived,
            "items": [api_serialize_security_summary(summary) for summary in summaries],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/{security_class_id}/archive")
    def api_security_class_archive(
        security_class_id: str,
        entity_id: str = Query(),
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        return _api_security_class_toggle(security_class_id, entity_id, True, actor_id)

    @router.post("/{security_class_id}/unarchive")
    def api_security_class_unarchive(
        security_class_id: str,
        entity_id: str = Query(),
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        return _api_security_class_toggle(security_class_id, entity_id, False, actor_id)

    def _api_security_class_toggle(
        security_class_id: str,
        entity_id: str,
        is_archived: bool,
        actor_id: str | None,
    ) -> JSONResponse:
        try:
            security_class = registry_service.registry_security_class_set_archived(
                entity_id=entity_id,
                security_class_id=security_class_id,
                is_archived=is_archived,
                actor_id=actor_id or "",
            )
        except LedgerError as error:
            return api_error_response(error)
        payload = {
            "security_class_id": security_class.security_class_id,
            "entity_id": security_class.entity_id,
            "name": security_class.name,
            "is_archived": security_class.is_archived,
            "updated_at_utc": security_class.updated_at_utc.isoformat(),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
