"""Derive the flattened legacy schema view from a versioned schema."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docfields.typing.enums import FieldType, LegacyType
from docfields.typing.models import LegacyField

if TYPE_CHECKING:
    from docfields.typing.models import FieldDefinition, RepeaterDefinition, Schema

# Every FieldType member must appear here.
LEGACY_TYPES: dict[FieldType, LegacyType] = {
    FieldType.TEXT: LegacyType.SINGLE,
    FieldType.TEXTAREA: LegacyType.TEXTAREA,
    FieldType.HTML: LegacyType.RICH,
    FieldType.NUMBER: LegacyType.SINGLE,
    FieldType.DATE: LegacyType.SINGLE,
    FieldType.EMAIL: LegacyType.SINGLE,
    FieldType.URL: LegacyType.SINGLE,
}


def collapse_type(field_type: FieldType) -> LegacyType:
    """Collapse a field type to its legacy editor type."""
    return LEGACY_TYPES[field_type]


def _legacy_field(definition: FieldDefinition) -> LegacyField:
    return LegacyField(slug=definition.slug, label=definition.label, type=collapse_type(definition.type))


def _legacy_repeater(repeater: RepeaterDefinition) -> LegacyField:
    return LegacyField(
        slug=repeater.slug,
        label=repeater.label,
        type=LegacyType.ARRAY,
        item_schema={item.slug: _legacy_field(item) for item in repeater.fields},
    )


def to_legacy(schema: Schema) -> list[LegacyField]:
    """Convert a versioned schema into the legacy view.

    Top-level fields come first, in schema order, followed by one ``array``
    entry per repeater. The input is never modified and the view is rebuilt
    on every call.

    Args:
        schema (Schema): Versioned schema.

    Returns:
        list[LegacyField]: Legacy entries.
    """
    return [
        *(_legacy_field(item) for item in schema.fields),
        *(_legacy_repeater(item) for item in schema.repeaters),
    ]


def legacy_item_types(entry: LegacyField) -> dict[str, LegacyType]:
    """Return the nested slug to type map of an array entry.

    Args:
        entry (LegacyField): Legacy entry.

    Returns:
        dict[str, LegacyType]: Nested types, empty for scalar entries.
    """
    if entry.item_schema is None:
        return {}
    return {slug: item.type for slug, item in entry.item_schema.items()}


def legacy_payload(schema: Schema) -> list[dict[str, object]]:
    """Return the legacy view as JSON-ready dictionaries."""
    return [item.model_dump(mode="json", exclude_none=True) for item in to_legacy(schema)]
