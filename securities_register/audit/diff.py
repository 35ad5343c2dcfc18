"""Structural change detection and JSON shaping for audit payloads."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping


def audit_changed_fields(
    old: Mapping[str, Any],
    new: Mapping[str, Any],
    field_names: Iterable[str] | None = None,
) -> dict[str, dict[str, Any]]:
    """Return only the fields whose values differ between two snapshots.

    Args:
        old: Snapshot before the mutation.
        new: Snapshot after the mutation.
        field_names: Optional fields to compare; defaults to keys present in `new`.

    Returns:
        dict[str, dict[str, Any]]: `{field: {"old_value": ..., "new_value": ...}}`
        for changed fields only, in comparison order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    compared_fields = list(new.keys()) if field_names is None else list(field_names)
    changes: dict[str, dict[str, Any]] = {}
    for field_name in compared_fields:
        old_value = old.get(field_name)
        new_value = new.get(field_name)
        if audit_value_changed(old_value, new_value):
            changes[field_name] = {"old_value": old_value, "new_value": new_value}
    return changes


def audit_value_changed(old_value: Any, new_value: Any) -> bool:
    """Compare two field values by value rather than identity.

    Decimals compare numerically, so `Decimal("1.0")` equals `Decimal("1.00")`.
    Booleans never equal integers.
    """

    if old_value is None or new_value is None:
        return old_value is not new_value
    if isinstance(old_value, bool) != isinstance(new_value, bool):
        return True
    if isinstance(old_value, datetime) != isinstance(new_value, datetime):
        return True
    if isinstance(old_value, Mapping) and isinstance(new_value, Mapping):
        if old_value.keys() != new_value.keys():
            return True
        return any(audit_value_changed(old_value[key], new_value[key]) for key in old_value)
    if isinstance(old_value, (list, tuple)) and isinstance(new_value, (list, tuple)):
        if len(old_value) != len(new_value):
            return True
        return any(audit_value_changed(left, right) for left, right in zip(old_value, new_value))
    return bool(old_value != new_value)


def audit_jsonable(value: Any) -> Any:
    """Convert a snapshot value into a JSON-compatible structure.

    Decimals become strings so amounts survive storage without float rounding.
    """

    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Enum):
        return audit_jsonable(value.value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float):
        return value
    if is_dataclass(value) and not isinstance(value, type):
        return audit_jsonable(asdict(value))
    if isinstance(value, Mapping):
        return {str(key): audit_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [audit_jsonable(item) for item in value]
    return str(value)
