"""Marker attribute to field definition mapping."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docfields.typing.enums import DataType, FieldType
from docfields.typing.models import FieldDefinition

if TYPE_CHECKING:
    from docfields.typing.models import TemplateMarker

DEFAULT_FIELD_TYPE = FieldType.TEXTAREA

# Every FieldType member must appear here.
DATA_TYPES: dict[FieldType, DataType] = {
    FieldType.TEXT: DataType.TEXT,
    FieldType.TEXTAREA: DataType.TEXT,
    FieldType.HTML: DataType.TEXT,
    FieldType.NUMBER: DataType.NUMBER,
    FieldType.DATE: DataType.DATE,
    FieldType.EMAIL: DataType.TEXT,
    FieldType.URL: DataType.TEXT,
}

_COPIED_ATTRIBUTES = (
    "placeholder",
    "description",
    "pattern",
    "patternmsg",
    "minvalue",
    "maxvalue",
    "length",
    "title",
)
_UNSAFE_SLUG_CHARS = re.compile(r"[^a-z0-9_]")
_SEPARATORS = re.compile(r"[\s_-]+")


def sanitize_slug(raw: str) -> str:
    """Reduce a raw token to the safe-key alphabet ``[a-z0-9_]``.

    Args:
        raw (str): Raw slug.

    Returns:
        str: Sanitized slug, possibly empty.
    """
    return _UNSAFE_SLUG_CHARS.sub("", raw.lower())


def humanize_slug(slug: str) -> str:
    """Turn ``resolution_title`` into ``Resolution Title``."""
    words = _SEPARATORS.sub(" ", slug).strip()
    if not words:
        return slug
    return " ".join(word[:1].upper() + word[1:] for word in words.split(" "))


def resolve_field_type(raw: str | None) -> FieldType:
    """Map the `type` attribute to a field type; absent or unknown gives textarea."""
    return FieldType.coerce(raw, DEFAULT_FIELD_TYPE)


def resolve_field(marker: TemplateMarker, slug: str) -> FieldDefinition:
    """Resolve one marker into a field definition.

    Args:
        marker (TemplateMarker): Source marker.
        slug (str): Sanitized slug for the field within its scope.

    Returns:
        FieldDefinition: Resolved field.
    """
    attributes = marker.attributes
    field_type = resolve_field_type(attributes.get("type"))
    copied = {name: attributes.get(name, "").strip() for name in _COPIED_ATTRIBUTES}
    label = copied["title"] or humanize_slug(slug)

    return FieldDefinition(
        slug=slug,
        label=label,
        type=field_type,
        data_type=DATA_TYPES[field_type],
        case_transform=attributes.get("ope", ""),
        date_format=attributes.get("frm", ""),
        **copied,
    )
