"""Structured content blob codec.

A document body stores every field value in one text payload made of
delimited fragments::

    <!-- docfields-field slug="title" type="single" -->
    Annual report
    <!-- /docfields-field -->

Fragments are separated by a blank line so that revisions diff line by line.
Repeater values are JSON arrays of item objects, written with HTML-significant
characters hex-escaped so that the payload survives an external
escape/unescape round trip.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

from docfields import logger
from docfields.typing.enums import LegacyType
from docfields.typing.models import StructuredFieldValue

if TYPE_CHECKING:
    from collections.abc import Iterable

ARRAY_MAX_ITEMS = 20
FRAGMENT_SEPARATOR = "\n\n"
OPEN_TAG = "docfields-field"
CLOSE_MARKER = f"<!-- /{OPEN_TAG} -->"

_OPEN_MARKER = re.compile(rf"<!--\s*{OPEN_TAG}\b([^>]*?)\s*-->")
_ATTRIBUTE = re.compile(r'([a-zA-Z0-9_-]+)="([^"]*)"')
_UNSAFE_KEY_CHARS = re.compile(r"[^a-z0-9_-]")

_JSON_ESCAPABLE = re.compile(r"""\\(.)|([<>&'])""")
_HEX_ESCAPE = "\\u{:04X}"
_ENTITIES = {"&amp;": "&", "&lt;": "<", "&gt;": ">", "&quot;": '"', "&#039;": "'", "&#39;": "'", "&#x27;": "'"}
_ENTITY = re.compile("|".join(re.escape(entity) for entity in _ENTITIES))
_BARE_UNICODE = re.compile(r"u([0-9a-f]{4})", re.IGNORECASE)
_REPAIR_TRIGGER = "u00"


def sanitize_key(raw: str) -> str:
    """Lowercase a key and keep only ``[a-z0-9_-]``."""
    return _UNSAFE_KEY_CHARS.sub("", str(raw).lower())


def build_field_fragment(slug: str, value: str, field_type: LegacyType | str | None = None) -> str:
    """Render one field as a delimited fragment.

    Args:
        slug (str): Field slug.
        value (str): Raw field value.
        field_type (LegacyType | str | None): Legacy type; omitted from the
            fragment unless it is a known legacy type.

    Returns:
        str: Fragment text, or an empty string when the slug sanitizes to nothing.
    """
    safe_slug = sanitize_key(slug)
    if not safe_slug:
        return ""
    attributes = f'slug="{safe_slug}"'
    known_type = LegacyType.coerce(field_type, None) if field_type else None
    if known_type is not None:
        attributes += f' type="{known_type.to_str()}"'
    return f"<!-- {OPEN_TAG} {attributes} -->\n{value}\n{CLOSE_MARKER}"


def encode_fields(fields: Mapping[str, StructuredFieldValue] | Iterable[StructuredFieldValue]) -> str:
    """Encode field values into a content blob, keeping their order.

    Args:
        fields (Mapping[str, StructuredFieldValue] | Iterable[StructuredFieldValue]): Values to encode.

    Returns:
        str: Content blob; empty when there is nothing to encode.
    """
    items = fields.values() if isinstance(fields, Mapping) else fields
    fragments = [build_field_fragment(item.slug, item.value, item.type) for item in items]
    return FRAGMENT_SEPARATOR.join(fragment for fragment in fragments if fragment)


def _parse_attributes(raw: str) -> dict[str, str]:
    return {key.lower(): value for key, value in _ATTRIBUTE.findall(raw)}


def _unframe(value: str) -> str:
    if value.startswith("\n"):
        value = value[1:]
    if value.endswith("\n"):
        value = value[:-1]
    return value


def decode_content(blob: str) -> dict[str, StructuredFieldValue]:
    """Decode a content blob into a slug-keyed map.

    The blob is scanned once. A fragment is kept only when its close marker
    appears before the next open marker; otherwise it is dropped whole.

    Args:
        blob (str): Stored content blob.

    Returns:
        dict[str, StructuredFieldValue]: Decoded values in blob order.
    """
    if not blob or OPEN_TAG not in blob:
        return {}

    opens = list(_OPEN_MARKER.finditer(blob))
    fields: dict[str, StructuredFieldValue] = {}
    dropped = 0
    for index, match in enumerate(opens):
        limit = opens[index + 1].start() if index + 1 < len(opens) else len(blob)
        close = blob.find(CLOSE_MARKER, match.end(), limit)
        attributes = _parse_attributes(match.group(1))
        slug = sanitize_key(attributes.get("slug", ""))
        if close < 0 or not slug:
            dropped += 1
            continue
        raw_type = attributes.get("type", "")
        fields[slug] = StructuredFieldValue(
            slug=slug,
            type=LegacyType.coerce(raw_type, None) if raw_type else None,
            value=_unframe(blob[match.end() : close]),
        )

    if dropped:
        logger.debug("Dropped malformed content fragments", extra={"count": dropped})
    return fields


def _hex_escape(match: re.Match[str]) -> str:
    escaped = match.group(1)
    if escaped is None:
        return _HEX_ESCAPE.format(ord(match.group(2)))
    if escaped == '"':
        return _HEX_ESCAPE.format(ord('"'))
    return match.group(0)


def encode_array_items(items: Iterable[Mapping[str, str]]) -> str:
    """Encode repeater items as hex-escaped JSON.

    Quotes inside strings, angle brackets, ampersands and apostrophes become
    ``\\uXXXX`` escapes; non-ASCII characters are escaped as well.

    Args:
        items (Iterable[Mapping[str, str]]): Item objects.

    Returns:
        str: JSON array text.
    """
    raw = json.dumps([dict(item) for item in items], ensure_ascii=True, separators=(",", ":"))
    return _JSON_ESCAPABLE.sub(_hex_escape, raw)


def repair_unescaped_unicode(text: str) -> str:
    """Restore ``\\uXXXX`` sequences that lost their backslash.

    Only runs when the text contains ``u00``. Every ``u`` followed by four hex
    digits is then read as a UTF-16BE code unit, which also rewrites ordinary
    text that happens to match the pattern. Surrogate halves are left as is.

    Args:
        text (str): Decoded item value.

    Returns:
        str: Repaired value.
    """
    if _REPAIR_TRIGGER not in text:
        return text

    def _replace(match: re.Match[str]) -> str:
        code = int(match.group(1), 16)
        if 0xD800 <= code <= 0xDFFF:
            return match.group(0)
        return chr(code)

    return _BARE_UNICODE.sub(_replace, text)


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, str | int | float):
        return repair_unescaped_unicode(str(value))
    return ""


def decode_array_items(value: str, max_items: int | None = ARRAY_MAX_ITEMS) -> list[dict[str, str]]:
    """Decode a stored repeater value into item dictionaries.

    Args:
        value (str): Stored JSON text, possibly HTML-entity encoded.
        max_items (int | None): Maximum number of items returned, None for no limit.

    Returns:
        list[dict[str, str]]: Items with sanitized keys and string values.
    """
    text = str(value)
    if not text.strip():
        return []
    if "&" in text:
        text = _ENTITY.sub(lambda match: _ENTITIES[match.group(0)], text)

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Array value is not valid JSON", extra={"length": len(text)})
        return []
    if isinstance(decoded, dict):
        decoded = list(decoded.values())
    if not isinstance(decoded, list):
        return []

    items: list[dict[str, str]] = []
    for item in decoded:
        if not isinstance(item, dict):
            continue
        items.append({sanitize_key(key): _stringify(raw) for key, raw in item.items()})
    return items if max_items is None else items[:max_items]
