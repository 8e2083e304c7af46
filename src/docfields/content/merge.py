"""Rebuild a document's content blob on save.

Saving merges three sources into one blob:

1. the fields of the current schema, in legacy order;
2. the values previously stored in the blob, including fields the schema no
   longer declares;
3. the values submitted by the editor.

For schema fields the submitted value wins, then the stored value. Stored
fields the schema does not know are carried over as ``rich`` unknown fields,
as are submitted values for slugs nobody declared, so that a template change
never drops data silently.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from docfields import logger
from docfields.content.codec import (
    ARRAY_MAX_ITEMS,
    decode_array_items,
    decode_content,
    encode_array_items,
    encode_fields,
    sanitize_key,
)
from docfields.content.sanitize import effective_type, sanitize_array_items, sanitize_value
from docfields.schema.converter import legacy_item_types, to_legacy
from docfields.typing.enums import LegacyType
from docfields.typing.models import ContentRebuild, StructuredFieldValue
from docfields.validation import validate_values

if TYPE_CHECKING:
    from docfields.typing.models import LegacyField, Schema

EMPTY_ARRAY = "[]"


def _scalar(raw: object) -> str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "1" if raw else ""
    if isinstance(raw, int | float):
        return str(raw)
    return None


def _submitted_items(raw: object) -> list[object] | None:
    if isinstance(raw, str):
        return list(decode_array_items(raw, max_items=None))
    if isinstance(raw, list | tuple):
        return list(raw)
    return None


class ContentMerger:
    """Merge schema, stored and submitted values into a rebuilt blob."""

    def __init__(self, schema: Schema | None, *, max_items: int = ARRAY_MAX_ITEMS) -> None:
        self.schema = schema
        self.max_items = max_items
        self.legacy: list[LegacyField] = to_legacy(schema) if schema is not None else []

    def _merge_array(
        self,
        entry: LegacyField,
        submitted: Mapping[str, object],
        previous: Mapping[str, StructuredFieldValue],
    ) -> tuple[StructuredFieldValue, list[dict[str, str]] | None]:
        items: list[dict[str, str]] = []
        posted = _submitted_items(submitted[entry.slug]) if entry.slug in submitted else None
        if posted is not None:
            items = sanitize_array_items(posted, legacy_item_types(entry), self.max_items)
        elif entry.slug in previous and previous[entry.slug].type == LegacyType.ARRAY:
            items = decode_array_items(previous[entry.slug].value, self.max_items)

        value = encode_array_items(items) if items else EMPTY_ARRAY
        merged = StructuredFieldValue(slug=entry.slug, type=LegacyType.ARRAY, value=value)
        return merged, items if posted is not None else None

    @staticmethod
    def _merge_scalar(
        entry: LegacyField,
        submitted: Mapping[str, object],
        previous: Mapping[str, StructuredFieldValue],
    ) -> tuple[StructuredFieldValue, str | None]:
        raw = _scalar(submitted[entry.slug]) if entry.slug in submitted else None
        if raw is not None:
            field_type = effective_type(raw, entry.type)
            value = sanitize_value(raw, field_type)
            return StructuredFieldValue(slug=entry.slug, type=field_type, value=value), value
        stored = previous.get(entry.slug)
        return StructuredFieldValue(slug=entry.slug, type=entry.type, value=stored.value if stored else ""), None

    def merge(self, submitted: Mapping[str, object], previous_blob: str = "") -> ContentRebuild:
        """Run the merge.

        Args:
            submitted (Mapping[str, object]): Submitted values by slug. Scalar
                fields take strings; repeaters take a list of item dicts or
                their JSON text.
            previous_blob (str): Blob currently stored for the document.

        Returns:
            ContentRebuild: Rebuilt blob, merged values, unknown slugs and validation mismatches.
        """
        posted = {sanitize_key(key): raw for key, raw in submitted.items() if sanitize_key(key)}
        previous = decode_content(previous_blob)

        fields: dict[str, StructuredFieldValue] = {}
        scalar_values: dict[str, str] = {}
        item_values: dict[str, list[dict[str, str]]] = {}
        for entry in self.legacy:
            if entry.type == LegacyType.ARRAY:
                merged, items = self._merge_array(entry, posted, previous)
                if items:
                    item_values[entry.slug] = items
            else:
                merged, value = self._merge_scalar(entry, posted, previous)
                if value is not None:
                    scalar_values[entry.slug] = value
            fields[entry.slug] = merged

        unknown_slugs: list[str] = []
        for slug, stored in previous.items():
            if slug in fields:
                continue
            raw = _scalar(posted[slug]) if slug in posted else None
            value = sanitize_value(raw, LegacyType.RICH) if raw is not None else stored.value
            fields[slug] = StructuredFieldValue(slug=slug, type=LegacyType.RICH, value=value)
            unknown_slugs.append(slug)

        for slug, raw in posted.items():
            value = _scalar(raw)
            if slug in fields or value is None:
                continue
            cleaned = sanitize_value(value, LegacyType.RICH)
            fields[slug] = StructuredFieldValue(slug=slug, type=LegacyType.RICH, value=cleaned)
            unknown_slugs.append(slug)

        mismatches = validate_values(self.schema, scalar_values, item_values) if self.schema is not None else []
        if unknown_slugs:
            logger.info("Unknown fields preserved", extra={"slugs": unknown_slugs})

        return ContentRebuild(
            blob=encode_fields(fields) if fields else "",
            fields=fields,
            unknown_slugs=unknown_slugs,
            mismatches=mismatches,
        )


def rebuild_content(
    schema: Schema | None,
    submitted: Mapping[str, object],
    previous_blob: str = "",
    *,
    max_items: int = ARRAY_MAX_ITEMS,
) -> ContentRebuild:
    """Rebuild a document blob from the schema, stored blob and submitted values.

    Args:
        schema (Schema | None): Current schema, None when the classification has none.
        submitted (Mapping[str, object]): Submitted values by slug.
        previous_blob (str): Blob currently stored for the document.
        max_items (int): Maximum number of repeater items kept.

    Returns:
        ContentRebuild: Merge outcome.
    """
    return ContentMerger(schema, max_items=max_items).merge(submitted, previous_blob)
