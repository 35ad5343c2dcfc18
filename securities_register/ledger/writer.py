"""Transaction ledger service: atomic register writes, reads, and summaries."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Any, Mapping

from securities_register.audit import AuditRecorder, audit_changed_fields
from securities_register.config import LedgerConfig
from securities_register.db import (
    EntityRecord,
    LedgerStorePort,
    LedgerUnitOfWorkPort,
    TransactionInsertRequest,
    TransactionListFilters,
    TransactionRecord,
)
from securities_register.domain import (
    AuditAction,
    AuditTableName,
    EntityNotFoundError,
    InvalidTransactionShapeError,
    LedgerError,
    TransactionNotFoundError,
    TransactionStatus,
    UnauthorizedError,
)

from .decimal_math import ledger_compute_total, ledger_parse_amount
from .interfaces import BulkCreateResult, BulkTransactionCreateRequest, RegisterOverview, TransactionCreateRequest
from .summary import SecurityClassSummary, summary_build, summary_fold_member_holdings
from .validator import validator_check_references, validator_check_shape

logger = logging.getLogger(__name__)

LEDGER_CORRECTABLE_FIELDS = (
    "quantity",
    "amount_paid_per_security",
    "amount_unpaid_per_security",
    "transfer_price_per_security",
    "from_member_id",
    "to_member_id",
    "tranche_number",
    "tranche_sequence",
    "posted_date",
    "settlement_date",
    "status",
    "reason_code",
    "currency_code",
    "reference",
    "description",
    "certificate_number",
)

_LEDGER_AMOUNT_FIELDS = (
    "amount_paid_per_security",
    "amount_unpaid_per_security",
    "transfer_price_per_security",
)
_LEDGER_TOTAL_TRIGGER_FIELDS = frozenset({"quantity", *_LEDGER_AMOUNT_FIELDS})
_LEDGER_RECENT_TRANSACTION_LIMIT = 10


class TransactionLedgerService:
    """Register transaction ledger.

    Every mutation runs inside one store unit of work: validation reads, the
    row write, and its audit entries commit together or not at all. Writers on
    the same security class are serialized by the unit-of-work lock.
    """

    def __init__(self, store: LedgerStorePort, config: LedgerConfig):
        """Initialize ledger service.

        Args:
            store: Ledger persistence store.
            config: Immutable ledger defaults.

        Raises:
            ValueError: Raised when store or config is None.
        """

        if store is None:
            raise ValueError("store must not be None")
        if config is None:
            raise ValueError("config must not be None")
        self._store = store
        self._config = config

    def ledger_transaction_create(self, request: TransactionCreateRequest, actor_id: str) -> TransactionRecord:
        """Validate and persist one transaction with its CREATE audit entry.

        Args:
            request: Transaction create payload.
            actor_id: Authenticated actor for attribution.

        Returns:
            TransactionRecord: Persisted transaction.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
            InvalidTransactionShapeError: Raised when the transaction shape is invalid.
            EntityNotFoundError: Raised when the entity does not exist.
            SecurityClassNotFoundError: Raised when the class does not exist in the entity.
            SecurityClassArchivedError: Raised when the class is archived.
            MemberNotFoundError: Raised when a referenced member does not exist.
            PersistenceFailureError: Raised when storage fails; nothing is persisted.
        """

        try:
            ledger_require_actor(actor_id)
            amount_paid = ledger_parse_amount(request.amount_paid_per_security, "amount_paid_per_security")
            amount_unpaid = ledger_parse_amount(request.amount_unpaid_per_security, "amount_unpaid_per_security")
            transfer_price = ledger_parse_amount(request.transfer_price_per_security, "transfer_price_per_security")
            reason_code = ledger_normalize_reason_code(request.reason_code)
            validator_check_shape(
                transaction_type=request.transaction_type,
                from_member_id=request.from_member_id,
                to_member_id=request.to_member_id,
                quantity=request.quantity,
                transfer_price_per_security=transfer_price,
                status=request.status,
                reason_code=reason_code,
            )
            posted_date = request.posted_date or ledger_utc_today()

            with self._store.db_unit_of_work() as unit_of_work:
                entity = self._ledger_require_entity(unit_of_work, request.entity_id)
                unit_of_work.db_security_class_lock(request.security_class_id)
                validator_check_references(
                    unit_of_work=unit_of_work,
                    entity_id=request.entity_id,
                    security_class_id=request.security_class_id,
                    member_ids=(request.from_member_id, request.to_member_id),
                )
                record = unit_of_work.db_transaction_insert(
                    TransactionInsertRequest(
                        entity_id=request.entity_id,
                        security_class_id=request.security_class_id,
                        transaction_type=request.transaction_type,
                        reason_code=reason_code,
                        quantity=request.quantity,
                        amount_paid_per_security=amount_paid,
                        amount_unpaid_per_security=amount_unpaid,
                        transfer_price_per_security=transfer_price,
                        currency_code=self._ledger_resolve_currency(request.currency_code, entity),
                        total_amount_paid=ledger_compute_total(amount_paid, request.quantity),
                        total_amount_unpaid=ledger_compute_total(amount_unpaid, request.quantity),
                        total_transfer_amount=ledger_compute_total(transfer_price, request.quantity),
                        from_member_id=request.from_member_id,
                        to_member_id=request.to_member_id,
                        tranche_number=request.tranche_number,
                        tranche_sequence=request.tranche_sequence,
                        posted_date=posted_date,
                        settlement_date=request.settlement_date or posted_date,
                        status=request.status or TransactionStatus.COMPLETED.value,
                        reference=request.reference,
                        description=request.description,
                        certificate_number=request.certificate_number,
                        created_by=actor_id,
                    )
                )
                AuditRecorder(sink=unit_of_work).audit_log_create(
                    entity_id=record.entity_id,
                    actor_id=actor_id,
                    table_name=AuditTableName.TRANSACTION.value,
                    record_id=record.transaction_id,
                    snapshot=asdict(record),
                )
        except LedgerError as error:
            logger.warning("transaction create rejected: code=%s detail=%s", error.code, error.message)
            raise

        logger.info(
            "transaction %s created: type=%s security_class=%s quantity=%s actor=%s",
            record.transaction_id,
            record.transaction_type,
            record.security_class_id,
            record.quantity,
            actor_id,
        )
        return record

    def ledger_transaction_create_bulk(self, request: BulkTransactionCreateRequest, actor_id: str) -> BulkCreateResult:
        """Persist an ordered batch of same-type transactions all-or-nothing.

        Every line item is shape-validated before any read or write. The shared
        security class and the union of referenced members are checked once,
        then every row and its audit entry are written in one unit of work.

        Args:
            request: Bulk create payload.
            actor_id: Authenticated actor for attribution.

        Returns:
            BulkCreateResult: Created transactions in line-item order and their count.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
            InvalidTransactionShapeError: Raised when any line item is invalid.
            EntityNotFoundError: Raised when the entity does not exist.
            SecurityClassNotFoundError: Raised when the class does not exist in the entity.
            SecurityClassArchivedError: Raised when the class is archived.
            MemberNotFoundError: Raised when any referenced member does not exist.
            PersistenceFailureError: Raised when storage fails; nothing is persisted.
        """

        try:
            ledger_require_actor(actor_id)
            if not request.line_items:
                raise InvalidTransactionShapeError("BULK_LINE_ITEMS_REQUIRED", "at least one line item is required")

            reason_code = ledger_normalize_reason_code(request.reason_code)
            parsed_amounts: list[tuple[Any, Any]] = []
            for index, line_item in enumerate(request.line_items):
                try:
                    amount_paid = ledger_parse_amount(line_item.amount_paid_per_security, "amount_paid_per_security")
                    amount_unpaid = ledger_parse_amount(
                        line_item.amount_unpaid_per_security,
                        "amount_unpaid_per_security",
                    )
                    validator_check_shape(
                        transaction_type=request.transaction_type,
                        from_member_id=line_item.from_member_id,
                        to_member_id=line_item.to_member_id,
                        quantity=line_item.quantity,
                        reason_code=reason_code,
                    )
                except InvalidTransactionShapeError as error:
                    raise InvalidTransactionShapeError(error.rule, f"line item {index}: {error.message}") from error
                parsed_amounts.append((amount_paid, amount_unpaid))

            posted_date = request.posted_date or ledger_utc_today()
            referenced_member_ids: set[str | None] = set()
            for line_item in request.line_items:
                referenced_member_ids.update((line_item.from_member_id, line_item.to_member_id))

            created: list[TransactionRecord] = []
            with self._store.db_unit_of_work() as unit_of_work:
                entity = self._ledger_require_entity(unit_of_work, request.entity_id)
                unit_of_work.db_security_class_lock(request.security_class_id)
                validator_check_references(
                    unit_of_work=unit_of_work,
                    entity_id=request.entity_id,
                    security_class_id=request.security_class_id,
                    member_ids=referenced_member_ids,
                )
                currency_code = self._ledger_resolve_currency(request.currency_code, entity)
                recorder = AuditRecorder(sink=unit_of_work)

                for line_item, (amount_paid, amount_unpaid) in zip(request.line_items, parsed_amounts):
                    record = unit_of_work.db_transaction_insert(
                        TransactionInsertRequest(
                            entity_id=request.entity_id,
                            security_class_id=request.security_class_id,
                            transaction_type=request.transaction_type,
                            reason_code=reason_code,
                            quantity=line_item.quantity,
                            amount_paid_per_security=amount_paid,
                            amount_unpaid_per_security=amount_unpaid,
                            transfer_price_per_security=None,
                            currency_code=currency_code,
                            total_amount_paid=ledger_compute_total(amount_paid, line_item.quantity),
                            total_amount_unpaid=ledger_compute_total(amount_unpaid, line_item.quantity),
                            total_transfer_amount=None,
                            from_member_id=line_item.from_member_id,
                            to_member_id=line_item.to_member_id,
                            tranche_number=line_item.tranche_number,
                            tranche_sequence=line_item.tranche_sequence,
                            posted_date=posted_date,
                            settlement_date=posted_date,
                            status=TransactionStatus.COMPLETED.value,
                            reference=line_item.reference or request.reference,
                            description=line_item.description or request.description,
                            certificate_number=None,
                            created_by=actor_id,
                        )
                    )
                    recorder.audit_log_create(
                        entity_id=record.entity_id,
                        actor_id=actor_id,
                        table_name=AuditTableName.TRANSACTION.value,
                        record_id=record.transaction_id,
                        snapshot=asdict(record),
                    )
                    created.append(record)
        except LedgerError as error:
            logger.warning("bulk transaction create rejected: code=%s detail=%s", error.code, error.message)
            raise

        logger.info(
            "bulk create persisted %s %s transactions for security_class=%s actor=%s",
            len(created),
            request.transaction_type,
            request.security_class_id,
            actor_id,
        )
        return BulkCreateResult(created=tuple(created), count=len(created))

    def ledger_transaction_update(  # pylint: disable=too-many-locals
        self,
        transaction_id: str,
        patch: Mapping[str, Any],
        actor_id: str,
    ) -> TransactionRecord:
        """Apply a sparse correction patch to one transaction.

        Only supplied fields are applied. The resulting shape is re-validated
        against the unchanged transaction type. Totals are recomputed from the
        effective values whenever quantity or a per-security amount is patched.
        Fields whose value did not actually change are dropped; when nothing
        changes, no row update and no audit entry happen.

        Args:
            transaction_id: Transaction identifier.
            patch: Correctable field values keyed by field name.
            actor_id: Authenticated actor for attribution.

        Returns:
            TransactionRecord: Updated transaction, or the unchanged one for a no-op patch.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
            InvalidTransactionShapeError: Raised for unknown fields or an invalid resulting shape.
            TransactionNotFoundError: Raised when the transaction does not exist.
            SecurityClassArchivedError: Raised when the class is archived.
            MemberNotFoundError: Raised when a newly referenced member does not exist.
            PersistenceFailureError: Raised when storage fails; nothing is persisted.
        """

        try:
            ledger_require_actor(actor_id)
            normalized_patch = ledger_normalize_patch(patch)

            with self._store.db_unit_of_work() as unit_of_work:
                existing = unit_of_work.db_transaction_get(transaction_id)
                if existing is None:
                    raise TransactionNotFoundError(f"transaction {transaction_id} not found")
                unit_of_work.db_security_class_lock(existing.security_class_id)

                existing_values = asdict(existing)
                effective = {field: normalized_patch.get(field, existing_values[field]) for field in LEDGER_CORRECTABLE_FIELDS}
                validator_check_shape(
                    transaction_type=existing.transaction_type,
                    from_member_id=effective["from_member_id"],
                    to_member_id=effective["to_member_id"],
                    quantity=effective["quantity"],
                    transfer_price_per_security=effective["transfer_price_per_security"],
                    status=effective["status"],
                    reason_code=effective["reason_code"],
                )
                validator_check_references(
                    unit_of_work=unit_of_work,
                    entity_id=existing.entity_id,
                    security_class_id=existing.security_class_id,
                    member_ids=(
                        effective[field]
                        for field in ("from_member_id", "to_member_id")
                        if effective[field] != existing_values[field]
                    ),
                )

                proposed = dict(normalized_patch)
                if _LEDGER_TOTAL_TRIGGER_FIELDS & normalized_patch.keys():
                    proposed["total_amount_paid"] = ledger_compute_total(
                        effective["amount_paid_per_security"],
                        effective["quantity"],
                    )
                    proposed["total_amount_unpaid"] = ledger_compute_total(
                        effective["amount_unpaid_per_security"],
                        effective["quantity"],
                    )
                    proposed["total_transfer_amount"] = ledger_compute_total(
                        effective["transfer_price_per_security"],
                        effective["quantity"],
                    )

                changed_fields = audit_changed_fields(existing_values, proposed)
                if not changed_fields:
                    logger.info("transaction %s update was a no-op; nothing written", transaction_id)
                    return existing

                updated = unit_of_work.db_transaction_update(
                    transaction_id,
                    {field: change["new_value"] for field, change in changed_fields.items()},
                )
                AuditRecorder(sink=unit_of_work).audit_log_record_changes(
                    entity_id=updated.entity_id,
                    actor_id=actor_id,
                    action=AuditAction.UPDATE.value,
                    table_name=AuditTableName.TRANSACTION.value,
                    record_id=transaction_id,
                    changed_fields=changed_fields,
                )
        except LedgerError as error:
            logger.warning("transaction %s update rejected: code=%s detail=%s", transaction_id, error.code, error.message)
            raise

        logger.info(
            "transaction %s updated: fields=%s actor=%s",
            transaction_id,
            ",".join(changed_fields),
            actor_id,
        )
        return updated

    def ledger_transaction_delete(self, transaction_id: str, actor_id: str) -> TransactionRecord:
        """Delete one transaction after recording its full snapshot.

        Args:
            transaction_id: Transaction identifier.
            actor_id: Authenticated actor for attribution.

        Returns:
            TransactionRecord: The deleted transaction as it was before deletion.

        Raises:
            UnauthorizedError: Raised when actor_id is blank.
            TransactionNotFoundError: Raised when the transaction does not exist.
            PersistenceFailureError: Raised when storage fails; nothing is deleted.
        """

        try:
            ledger_require_actor(actor_id)
            with self._store.db_unit_of_work() as unit_of_work:
                existing = unit_of_work.db_transaction_get(transaction_id)
                if existing is None:
                    raise TransactionNotFoundError(f"transaction {transaction_id} not found")
                unit_of_work.db_security_class_lock(existing.security_class_id)
                AuditRecorder(sink=unit_of_work).audit_log_delete(
                    entity_id=existing.entity_id,
                    actor_id=actor_id,
                    table_name=AuditTableName.TRANSACTION.value,
                    record_id=transaction_id,
                    snapshot=asdict(existing),
                )
                unit_of_work.db_transaction_delete(transaction_id)
        except LedgerError as error:
            logger.warning("transaction %s delete rejected: code=%s detail=%s", transaction_id, error.code, error.message)
            raise

        logger.info("transaction %s deleted by actor=%s", transaction_id, actor_id)
        return existing

    def ledger_transaction_get(self, transaction_id: str) -> TransactionRecord:
        record = self._store.db_transaction_get_by_id(transaction_id)
        if record is None:
            raise TransactionNotFoundError(f"transaction {transaction_id} not found")
        return record

    def ledger_transaction_list(
        self,
        filters: TransactionListFilters,
        limit: int,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        """List transactions for one entity, most recent settlement first."""

        return self._store.db_transaction_list(filters=filters, limit=limit, offset=offset)

    def ledger_security_summary(self, entity_id: str, include_archived: bool = False) -> list[SecurityClassSummary]:
        """Summarize every security class of an entity from its Completed transactions.

        Args:
            entity_id: Owning entity identifier.
            include_archived: Whether archived classes are included.

        Returns:
            list[SecurityClassSummary]: One summary per class ordered by name.

        Raises:
            EntityNotFoundError: Raised when the entity does not exist.
            PersistenceFailureError: Raised when reads fail.
        """

        entity = self._store.db_entity_get(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"entity {entity_id} not found")

        security_classes = self._store.db_security_class_list_for_entity(entity_id, include_archived=include_archived)
        transactions = self._store.db_transaction_list_completed(entity_id)
        return summary_build(
            security_classes=security_classes,
            transactions=transactions,
            currency_code=entity.default_currency_code or self._config.default_currency_code,
            include_archived=include_archived,
        )

    def ledger_member_holdings(self, entity_id: str, include_archived: bool = False) -> dict[str, dict[str, int]]:
        """Derive per-member holdings for each security class of an entity.

        Args:
            entity_id: Owning entity identifier.
            include_archived: Whether archived classes are included.

        Returns:
            dict[str, dict[str, int]]: Holdings keyed by security class id, then member id.

        Raises:
            EntityNotFoundError: Raised when the entity does not exist.
        """

        if self._store.db_entity_get(entity_id) is None:
            raise EntityNotFoundError(f"entity {entity_id} not found")

        holdings: dict[str, dict[str, int]] = {}
        for security_class in self._store.db_security_class_list_for_entity(entity_id, include_archived=include_archived):
            transactions = self._store.db_transaction_list_completed(
                entity_id,
                security_class_id=security_class.security_class_id,
            )
            holdings[security_class.security_class_id] = summary_fold_member_holdings(transactions)
        return holdings

    def ledger_register_overview(self, entity_id: str, recent_limit: int = _LEDGER_RECENT_TRANSACTION_LIMIT) -> RegisterOverview:
        """Build the register dashboard for one entity.

        Args:
            entity_id: Owning entity identifier.
            recent_limit: Number of latest transactions to include.

        Returns:
            RegisterOverview: Row counts plus the latest transactions.

        Raises:
            EntityNotFoundError: Raised when the entity does not exist.
            PersistenceFailureError: Raised when reads fail.
        """

        if self._store.db_entity_get(entity_id) is None:
            raise EntityNotFoundError(f"entity {entity_id} not found")

        counts = self._store.db_register_counts(entity_id)
        recent_transactions = self._store.db_transaction_list(
            filters=TransactionListFilters(entity_id=entity_id),
            limit=recent_limit,
            offset=0,
        )
        return RegisterOverview(
            entity_id=entity_id,
            total_members=counts.total_members,
            total_security_classes=counts.active_security_classes + counts.archived_security_classes,
            active_security_classes=counts.active_security_classes,
            archived_security_classes=counts.archived_security_classes,
            total_transactions=counts.total_transactions,
            recent_transactions=tuple(recent_transactions),
        )

    def _ledger_require_entity(self, unit_of_work: LedgerUnitOfWorkPort, entity_id: str) -> EntityRecord:
        entity = unit_of_work.db_entity_get(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"entity {entity_id} not found")
        return entity

    def _ledger_resolve_currency(self, currency_code: str | None, entity: EntityRecord) -> str:
        resolved = (currency_code or entity.default_currency_code or self._config.default_currency_code).strip().upper()
        if len(resolved) != 3 or not resolved.isalpha():
            raise InvalidTransactionShapeError("INVALID_CURRENCY_CODE", f"currency code {resolved!r} is not a three-letter code")
        return resolved


def ledger_require_actor(actor_id: str | None) -> str:
    """Return the actor id or raise when the caller is unauthenticated."""

    if actor_id is None or not actor_id.strip():
        raise UnauthorizedError("an authenticated actor is required")
    return actor_id


def ledger_normalize_reason_code(reason_code: str | None) -> str | None:
    if reason_code is None or not reason_code.strip():
        return None
    return reason_code.strip().upper()


def ledger_normalize_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Validate patch keys and normalize patch values to storage types.

    Args:
        patch: Raw correction values keyed by field name.

    Returns:
        dict[str, Any]: Normalized patch.

    Raises:
        InvalidTransactionShapeError: Raised for unknown fields or malformed values.
    """

    unknown_fields = sorted(set(patch) - set(LEDGER_CORRECTABLE_FIELDS))
    if unknown_fields:
        raise InvalidTransactionShapeError(
            "UNKNOWN_PATCH_FIELD",
            f"fields cannot be corrected: {', '.join(unknown_fields)}",
        )

    normalized: dict[str, Any] = {}
    for field_name, value in patch.items():
        if field_name in _LEDGER_AMOUNT_FIELDS:
            normalized[field_name] = ledger_parse_amount(value, field_name)
        elif field_name == "reason_code":
            normalized[field_name] = ledger_normalize_reason_code(value)
        elif field_name == "currency_code":
            if value is None:
                raise InvalidTransactionShapeError("INVALID_CURRENCY_CODE", "currency_code must not be null")
            normalized[field_name] = str(value).strip().upper()
        elif field_name in ("posted_date", "settlement_date"):
            normalized[field_name] = _ledger_coerce_date(field_name, value)
        else:
            normalized[field_name] = value

    if "posted_date" in normalized and normalized["posted_date"] is None:
        raise InvalidTransactionShapeError("POSTED_DATE_REQUIRED", "posted_date must not be null")
    if "status" in normalized and normalized["status"] is None:
        raise InvalidTransactionShapeError("UNKNOWN_STATUS", "status must not be null")
    currency_code = normalized.get("currency_code")
    if currency_code is not None and (len(currency_code) != 3 or not currency_code.isalpha()):
        raise InvalidTransactionShapeError("INVALID_CURRENCY_CODE", f"currency code {currency_code!r} is not a three-letter code")
    return normalized


def _ledger_coerce_date(field_name: str, value: Any) -> date | None:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as error:
            raise InvalidTransactionShapeError(
                f"{field_name.upper()}_INVALID",
                f"{field_name} must be an ISO date",
            ) from error
    raise InvalidTransactionShapeError(f"{field_name.upper()}_INVALID", f"{field_name} must be an ISO date")


def ledger_utc_today() -> date:
    return datetime.now(timezone.utc).date()
