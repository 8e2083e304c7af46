"""Typed field value normalization helpers."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from docfields.typing.enums import DataType, FieldType

if TYPE_CHECKING:
    from docfields.typing.models import FieldDefinition

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y")


def normalize_typed_value(*, value: str, definition: FieldDefinition) -> str:
    """Normalize a submitted value based on its field definition.

    Args:
        value (str): Raw submitted value.
        definition (FieldDefinition): Field the value belongs to.

    Returns:
        str: Normalized value; unparseable values are returned stripped but otherwise unchanged.
    """
    stripped = value.strip()
    if not stripped:
        return ""

    if definition.data_type == DataType.NUMBER:
        return normalize_decimal(stripped)
    if definition.data_type == DataType.DATE:
        return normalize_date(stripped)
    if definition.type == FieldType.EMAIL:
        return stripped.lower()
    return stripped if definition.type in (FieldType.TEXT, FieldType.URL) else value


def normalize_decimal(value: str) -> str:
    """Return ``1 234,50`` as ``1234.5``."""
    compact = value.replace(" ", "").replace("\xa0", "")
    if "," in compact and "." in compact and compact.rfind(",") > compact.rfind("."):
        compact = compact.replace(".", "")
    compact = compact.replace(",", ".")
    try:
        number = Decimal(compact)
    except InvalidOperation:
        return value
    if not number.is_finite():
        return value
    normalized = format(number.normalize(), "f")
    if "." in normalized:
        normalized = normalized.rstrip("0").rstrip(".")
    return normalized


def normalize_date(value: str) -> str:
    """Return a day-first or ISO date as ``YYYY-MM-DD``."""
    for pattern in _DATE_FORMATS:
        try:
            return datetime.strptime(value, pattern).date().isoformat()  # noqa: DTZ007
        except ValueError:
            continue
    return value
