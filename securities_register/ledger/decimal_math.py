"""Exact decimal helpers for per-security amounts and derived totals."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from securities_register.domain import InvalidTransactionShapeError

_LEDGER_DECIMAL_PRECISION = 60
# Per-security amount columns are NUMERIC(20, 6).
_LEDGER_AMOUNT_SCALE = 6
_LEDGER_AMOUNT_INTEGER_DIGITS = 14
_LEDGER_AMOUNT_QUANTUM = Decimal(1).scaleb(-_LEDGER_AMOUNT_SCALE)


def ledger_compute_total(per_unit: Decimal | None, quantity: int) -> Decimal | None:
    """Multiply a per-security amount by quantity without rounding.

    Args:
        per_unit: Per-security amount, or None when not supplied.
        quantity: Non-negative security count.

    Returns:
        Decimal | None: Exact product, or None when per_unit is None.

    Raises:
        TypeError: Raised when per_unit is not a Decimal or quantity is not an int.
    """

    if per_unit is None:
        return None
    if not isinstance(per_unit, Decimal):
        raise TypeError("per_unit must be a Decimal")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise TypeError("quantity must be an int")

    with localcontext() as context:
        context.prec = _LEDGER_DECIMAL_PRECISION
        return per_unit * quantity


def ledger_parse_amount(value: object, field_name: str) -> Decimal | None:
    """Convert an API amount into an exact non-negative Decimal.

    Strings and integers are accepted; floats are rejected because their
    binary representation is not exact. Values must fit the stored column:
    at most 14 integer digits and 6 significant decimal places, so a total
    derived here matches one re-derived from the stored amount.

    Args:
        value: Raw input value.
        field_name: Field name used in the violated-rule identifier.

    Returns:
        Decimal | None: Parsed amount, or None when value is None.

    Raises:
        InvalidTransactionShapeError: Raised when value is not an exact finite non-negative amount.
    """

    if value is None:
        return None

    rule = f"{field_name.upper()}_INVALID_AMOUNT"
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidTransactionShapeError(rule, f"{field_name} must be a decimal string or integer, not {type(value).__name__}")

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation as error:
            raise InvalidTransactionShapeError(rule, f"{field_name} is not a valid decimal: {value!r}") from error
    else:
        raise InvalidTransactionShapeError(rule, f"{field_name} has unsupported type {type(value).__name__}")

    if not parsed.is_finite():
        raise InvalidTransactionShapeError(rule, f"{field_name} must be finite")
    if parsed < 0:
        raise InvalidTransactionShapeError(f"{field_name.upper()}_MUST_BE_NON_NEGATIVE", f"{field_name} must be >= 0")
    if parsed.adjusted() >= _LEDGER_AMOUNT_INTEGER_DIGITS:
        raise InvalidTransactionShapeError(
            f"{field_name.upper()}_PRECISION_EXCEEDED",
            f"{field_name} must have at most {_LEDGER_AMOUNT_INTEGER_DIGITS} integer digits",
        )
    with localcontext() as context:
        context.prec = _LEDGER_DECIMAL_PRECISION
        fits_scale = parsed == parsed.quantize(_LEDGER_AMOUNT_QUANTUM)
    if not fits_scale:
        raise InvalidTransactionShapeError(
            f"{field_name.upper()}_SCALE_EXCEEDED",
            f"{field_name} must have at most {_LEDGER_AMOUNT_SCALE} decimal places",
        )
    return parsed
