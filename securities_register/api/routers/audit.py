"""Audit API router composition for audit log queries and CSV export."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from securities_register.audit import AuditLogService
from securities_register.config import AppSettings
from securities_register.db import AuditLogFilters
from securities_register.domain import LedgerError

from ..errors import api_error_response
from ..serializers import api_serialize_audit_query_result


def api_create_audit_router(settings: AppSettings, audit_service: AuditLogService) -> APIRouter:
    """Create audit router with filtered JSON listing and CSV export.

    Args:
        settings: Runtime settings used for pagination defaults.
        audit_service: Audit query and export service.

    Returns:
        APIRouter: Router exposing `/audit`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if audit_service is None:
        raise ValueError("audit_service must not be None")

    router = APIRouter(tags=["audit"])

    @router.get("/audit", response_model=None)
    def api_audit_list(  # pylint: disable=too-many-arguments
        entity_id: str = Query(),
        start_at_utc: datetime | None = Query(default=None),
        end_at_utc: datetime | None = Query(default=None),
        actor_id: str | None = Query(default=None),
        table_name: str | None = Query(default=None),
        record_id: str | None = Query(default=None),
        action: str | None = Query(default=None),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
        export_format: str = Query(default="json", alias="format"),
    ) -> JSONResponse | StreamingResponse:
        """Return audit rows newest first, as a JSON page or a streamed CSV file.

        Args:
            entity_id: Owning entity identifier.
            start_at_utc: Optional inclusive lower timestamp bound.
            end_at_utc: Optional inclusive upper timestamp bound.
            actor_id: Optional actor filter.
            table_name: Optional table filter.
            record_id: Optional record filter.
            action: Optional action filter.
            limit: Max rows per JSON page.
            offset: Rows to skip for JSON pages.
            export_format: `json` or `csv`; CSV ignores pagination.

        Returns:
            JSONResponse | StreamingResponse: Audit page payload or CSV stream.
        """

        normalized_format = export_format.strip().lower()
        if normalized_format not in {"json", "csv"}:
            payload = {
                "status": "error",
                "code": "INVALID_EXPORT_FORMAT",
                "message": f"unsupported format={normalized_format}",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        filters = AuditLogFilters(
            entity_id=entity_id,
            start_at_utc=start_at_utc,
            end_at_utc=end_at_utc,
            actor_id=actor_id,
            table_name=table_name,
            record_id=record_id,
            action=action.strip().upper() if action else None,
        )

        if normalized_format == "csv":
            return StreamingResponse(
                audit_service.audit_export_csv(filters),
                media_type="text/csv",
                headers={"Content-Disposition": f'attachment; filename="audit-log-{entity_id}.csv"'},
            )

        try:
            result = audit_service.audit_query(filters=filters, limit=limit, offset=offset)
        except LedgerError as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_audit_query_result(result), status_code=status.HTTP_200_OK)

    return router
