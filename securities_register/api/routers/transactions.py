"""Transaction API router composition for ledger writes and reads."""

from __future__ import annotations

from datetime import date
from typing import Union

from fastapi import APIRouter, Header, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from securities_register.config import AppSettings
from securities_register.db import TransactionListFilters
from securities_register.domain import LedgerError
from securities_register.ledger import (
    BulkLineItem,
    BulkTransactionCreateRequest,
    TransactionCreateRequest,
    TransactionLedgerService,
)

from ..errors import api_error_response
from ..serializers import api_serialize_transaction_record

# Amounts arrive as decimal strings or integers; JSON floats are refused.
ApiAmount = Union[StrictStr, StrictInt, None]


class TransactionCreateBody(BaseModel):
    """Request body for `POST /transactions`."""

    model_config = ConfigDict(extra="forbid")

    entity_id: str
    security_class_id: str
    transaction_type: str
    quantity: int
    amount_paid_per_security: ApiAmount = None
    amount_unpaid_per_security: ApiAmount = None
    transfer_price_per_security: ApiAmount = None
    currency_code: str | None = None
    from_member_id: str | None = None
    to_member_id: str | None = None
    tranche_number: str | None = None
    tranche_sequence: int | None = None
    posted_date: date | None = None
    settlement_date: date | None = None
    status: str | None = None
    reason_code: str | None = None
    reference: str | None = None
    description: str | None = None
    certificate_number: str | None = None


class BulkLineItemBody(BaseModel):
    """One line item of `POST /transactions/bulk`."""

    model_config = ConfigDict(extra="forbid")

    quantity: int
    amount_paid_per_security: ApiAmount = None
    amount_unpaid_per_security: ApiAmount = None
    from_member_id: str | None = None
    to_member_id: str | None = None
    reference: str | None = None
    description: str | None = None
    tranche_number: str | None = None
    tranche_sequence: int | None = None


class BulkTransactionCreateBody(BaseModel):
    """Request body for `POST /transactions/bulk`."""

    model_config = ConfigDict(extra="forbid")

    entity_id: str
    security_class_id: str
    transaction_type: str
    transactions: list[BulkLineItemBody] = Field(min_length=1)
    posted_date: date | None = None
    currency_code: str | None = None
    reason_code: str | None = None
    reference: str | None = None
    description: str | None = None


class TransactionPatchBody(BaseModel):
    """Sparse correction body for `PATCH /transactions/{transaction_id}`.

    Only fields present in the request are applied.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int | None = None
    amount_paid_per_security: ApiAmount = None
    amount_unpaid_per_security: ApiAmount = None
    transfer_price_per_security: ApiAmount = None
    from_member_id: str | None = None
    to_member_id: str | None = None
    tranche_number: str | None = None
    tranche_sequence: int | None = None
    posted_date: date | None = None
    settlement_date: date | None = None
    status: str | None = None
    reason_code: str | None = None
    currency_code: str | None = None
    reference: str | None = None
    description: str | None = None
    certificate_number: str | None = None


def api_create_transactions_router(settings: AppSettings, ledger_service: TransactionLedgerService) -> APIRouter:
    """Create transaction router with create, bulk, list, detail, patch, and delete endpoints.

    Args:
        settings: Runtime settings used for pagination defaults.
        ledger_service: Ledger service performing validated, audited writes.

    Returns:
        APIRouter: Router exposing `/transactions` APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if ledger_service is None:
        raise ValueError("ledger_service must not be None")

    router = APIRouter(prefix="/transactions", tags=["transactions"])

    @router.post("")
    def api_transaction_create(
        body: TransactionCreateBody,
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        """Create one transaction and its audit entry atomically."""

        try:
            record = ledger_service.ledger_transaction_create(
                request=TransactionCreateRequest(**body.model_dump()),
                actor_id=actor_id or "",
            )
        except LedgerError as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_transaction_record(record), status_code=status.HTTP_201_CREATED)

    @router.post("/bulk")
    def api_transaction_create_bulk(
        body: BulkTransactionCreateBody,
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        """Create a batch of same-type transactions all-or-nothing.

        Returns:
            JSONResponse: `{created, count}` on full success, otherwise an error envelope.
        """

        request = BulkTransactionCreateRequest(
            entity_id=body.entity_id,
            security_class_id=body.security_class_id,
            transaction_type=body.transaction_type,
            line_items=tuple(BulkLineItem(**line_item.model_dump()) for line_item in body.transactions),
            posted_date=body.posted_date,
            currency_code=body.currency_code,
            reason_code=body.reason_code,
            reference=body.reference,
            description=body.description,
        )
        try:
            result = ledger_service.ledger_transaction_create_bulk(request=request, actor_id=actor_id or "")
        except LedgerError as error:
            return api_error_response(error)
        payload = {
            "created": [api_serialize_transaction_record(record) for record in result.created],
            "count": result.count,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_201_CREATED)

    @router.get("")
    def api_transaction_list(
        entity_id: str = Query(),
        member_id: str | None = Query(default=None),
        transaction_type: str | None = Query(default=None),
        security_class_id: str | None = Query(default=None),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return transactions for one entity, most recent settlement first.

        Args:
            entity_id: Owning entity identifier.
            member_id: Optional member on either side.
            transaction_type: Optional type filter.
            security_class_id: Optional class filter.
            limit: Max rows to return.
            offset: Rows to skip.

        Returns:
            JSONResponse: Transaction list payload.
        """

        applied_limit = min(limit, settings.api_max_limit)
        filters = TransactionListFilters(
            entity_id=entity_id,
            member_id=member_id,
            transaction_type=transaction_type,
            security_class_id=security_class_id,
        )
        try:
            records = ledger_service.ledger_transaction_list(filters=filters, limit=applied_limit, offset=offset)
        except LedgerError as error:
            return api_error_response(error)
        payload = {
            "items": [api_serialize_transaction_record(record) for record in records],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(records),
            },
            "filters": {
                "entity_id": entity_id,
                "member_id": member_id,
                "transaction_type": transaction_type,
                "security_class_id": security_class_id,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{transaction_id}")
    def api_transaction_detail(transaction_id: str) -> JSONResponse:
        try:
            record = ledger_service.ledger_transaction_get(transaction_id)
        except LedgerError as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_transaction_record(record), status_code=status.HTTP_200_OK)

    @router.patch("/{transaction_id}")
    def api_transaction_patch(
        transaction_id: str,
        body: TransactionPatchBody,
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        """Apply a sparse correction; unchanged fields produce no audit entry."""

        try:
            record = ledger_service.ledger_transaction_update(
                transaction_id=transaction_id,
                patch=body.model_dump(exclude_unset=True),
                actor_id=actor_id or "",
            )
        except LedgerError as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_transaction_record(record), status_code=status.HTTP_200_OK)

    @router.delete("/{transaction_id}")
    def api_transaction_delete(
        transaction_id: str,
        actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    ) -> JSONResponse:
        try:
            record = ledger_service.ledger_transaction_delete(transaction_id=transaction_id, actor_id=actor_id or "")
        except LedgerError as error:
            return api_error_response(error)
        payload = {"status": "deleted", "transaction": api_serialize_transaction_record(record)}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
