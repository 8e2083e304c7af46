"""Per-field validation of submitted values."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from docfields import logger
from docfields.processing.normalization import normalize_typed_value
from docfields.typing.enums import DataType, FieldType
from docfields.typing.models import ValidationMismatch

if TYPE_CHECKING:
    from collections.abc import Mapping

    from docfields.typing.models import FieldDefinition, Schema
    from docfields.typing.models.schema import Bound

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error:
        logger.debug("Ignoring invalid field pattern", extra={"pattern": pattern})
        return None


def _typed(value: str, definition: FieldDefinition) -> Bound | None:
    if definition.data_type == DataType.NUMBER:
        try:
            number = Decimal(value)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    if definition.data_type == DataType.DATE:
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


def _type_error(value: str, definition: FieldDefinition) -> str | None:
    if definition.data_type in (DataType.NUMBER, DataType.DATE) and _typed(value, definition) is None:
        return "Enter a valid number" if definition.data_type == DataType.NUMBER else "Enter a valid date"
    if definition.type == FieldType.EMAIL and not _EMAIL.match(value):
        return "Enter a valid email address"
    if definition.type == FieldType.URL:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return "Enter a valid URL"
    return None


def check_value(definition: FieldDefinition, value: str) -> str | None:
    """Check one value against its field constraints.

    Empty values are never reported. Checks run in order (semantic type,
    length, pattern, minimum, maximum) and the first failure wins.

    Args:
        definition (FieldDefinition): Field definition.
        value (str): Submitted value.

    Returns:
        str | None: Failure message, or None when the value is acceptable.
    """
    normalized = normalize_typed_value(value=value, definition=definition)
    if not normalized:
        return None

    message = _type_error(normalized, definition)
    if message:
        return message

    max_length = definition.max_length
    if max_length is not None and len(normalized) > max_length:
        return f"Use at most {max_length} characters"

    if definition.pattern:
        compiled = _compile_pattern(definition.pattern)
        if compiled is not None and compiled.fullmatch(normalized) is None:
            return definition.patternmsg or "The value does not match the expected format"

    typed = _typed(normalized, definition)
    if typed is not None:
        minimum = definition.min_bound
        if minimum is not None and type(minimum) is type(typed) and typed < minimum:
            return f"The value must be at least {definition.minvalue.strip()}"
        maximum = definition.max_bound
        if maximum is not None and type(maximum) is type(typed) and typed > maximum:
            return f"The value must be at most {definition.maxvalue.strip()}"
    return None


def validate_values(
    schema: Schema,
    values: Mapping[str, str],
    items: Mapping[str, list[dict[str, str]]] | None = None,
) -> list[ValidationMismatch]:
    """Validate submitted values against a schema.

    Args:
        schema (Schema): Current schema.
        values (Mapping[str, str]): Top-level values by slug.
        items (Mapping[str, list[dict[str, str]]] | None): Repeater items by repeater slug.

    Returns:
        list[ValidationMismatch]: Mismatches, in schema order.
    """
    mismatches: list[ValidationMismatch] = []
    for definition in schema.fields:
        message = check_value(definition, values.get(definition.slug, ""))
        if message:
            mismatches.append(ValidationMismatch(slug=definition.slug, message=message))

    for repeater in schema.repeaters:
        for index, item in enumerate((items or {}).get(repeater.slug, [])):
            for definition in repeater.fields:
                message = check_value(definition, item.get(definition.slug, ""))
                if message:
                    mismatches.append(
                        ValidationMismatch(
                            slug=repeater.slug,
                            message=message,
                            item_index=index,
                            item_field=definition.slug,
                        ),
                    )

    if mismatches:
        logger.debug("Validation mismatches", extra={"count": len(mismatches)})
    return mismatches
