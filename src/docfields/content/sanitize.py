"""Persistence-time value sanitization.

This is not an HTML sanitizer. Rich values only lose ``script``, ``style`` and
``iframe`` elements; everything else is stored as submitted.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from docfields.content.codec import ARRAY_MAX_ITEMS, sanitize_key
from docfields.typing.enums import LegacyType

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

BLOCK_TAGS = (
    "table",
    "thead",
    "tbody",
    "tr",
    "td",
    "th",
    "ul",
    "ol",
    "li",
    "p",
    "div",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "blockquote",
    "pre",
)
INLINE_TAGS = ("strong", "b", "em", "i", "u", "a", "span", "br", "sub", "sup", "s", "strike")

_DANGEROUS_ELEMENTS = re.compile(r"<(script|style|iframe)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_BLOCK_HTML = re.compile("<(?:" + "|".join(BLOCK_TAGS) + ")", re.IGNORECASE)
_INLINE_HTML = re.compile(r"<(?:" + "|".join(INLINE_TAGS) + r")(?:\s|>|/)", re.IGNORECASE)
_TAGS = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_INLINE_WHITESPACE = re.compile(r"[ \t\f\v]+")


def strip_dangerous_elements(value: str) -> str:
    """Normalize line endings and drop script, style and iframe elements."""
    text = value.replace("\r\n", "\n").replace("\r", "\n")
    return _DANGEROUS_ELEMENTS.sub("", text)


def sanitize_single(value: str) -> str:
    """Single-line value: tags removed, whitespace collapsed, trimmed."""
    return _WHITESPACE.sub(" ", _TAGS.sub("", value)).strip()


def sanitize_textarea(value: str) -> str:
    """Multi-line value: tags removed, line breaks kept, trimmed."""
    text = _TAGS.sub("", value.replace("\r\n", "\n").replace("\r", "\n"))
    lines = [_INLINE_WHITESPACE.sub(" ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


_SANITIZERS: dict[LegacyType, Callable[[str], str]] = {
    LegacyType.SINGLE: sanitize_single,
    LegacyType.TEXTAREA: sanitize_textarea,
    LegacyType.RICH: strip_dangerous_elements,
}


def contains_html(value: str) -> bool:
    """Tell whether a value carries block or inline formatting markup.

    Args:
        value (str): Submitted value.

    Returns:
        bool: True when the value must be handled as rich text.
    """
    if not value:
        return False
    return bool(_BLOCK_HTML.search(value) or _INLINE_HTML.search(value))


def effective_type(value: str, field_type: LegacyType) -> LegacyType:
    """Promote scalar values carrying markup to rich text."""
    if field_type in (LegacyType.SINGLE, LegacyType.TEXTAREA) and contains_html(value):
        return LegacyType.RICH
    return field_type


def sanitize_value(value: str, field_type: LegacyType) -> str:
    """Sanitize a scalar value for its legacy type.

    Args:
        value (str): Submitted value.
        field_type (LegacyType): Scalar legacy type.

    Raises:
        ValueError: If called with the array type.

    Returns:
        str: Sanitized value.
    """
    sanitizer = _SANITIZERS.get(field_type)
    if sanitizer is None:
        raise ValueError(f"No scalar sanitizer for type '{field_type}'")  # noqa: TRY003
    return sanitizer(value)


def _has_content(value: str, field_type: LegacyType) -> bool:
    if field_type == LegacyType.RICH:
        return bool(_TAGS.sub("", value).strip())
    return bool(value.strip())


def sanitize_array_items(
    items: list[object],
    item_types: Mapping[str, LegacyType],
    max_items: int = ARRAY_MAX_ITEMS,
) -> list[dict[str, str]]:
    """Sanitize submitted repeater items.

    Non-object items are skipped. Each item keeps only the repeater's nested
    slugs, sanitized for their type; items left without content are dropped.
    At most ``max_items`` items are kept, in submission order.

    Args:
        items (list[object]): Submitted items.
        item_types (Mapping[str, LegacyType]): Nested slug to legacy type.
        max_items (int): Maximum number of items kept.

    Returns:
        list[dict[str, str]]: Sanitized items.
    """
    sanitized: list[dict[str, str]] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        submitted = {sanitize_key(key): raw for key, raw in item.items()}
        clean: dict[str, str] = {}
        has_content = False
        for slug, item_type in item_types.items():
            raw = submitted.get(slug, "")
            text = str(raw) if isinstance(raw, str | int | float) else ""
            scalar_type = item_type if item_type != LegacyType.ARRAY else LegacyType.TEXTAREA
            value = sanitize_value(text, scalar_type)
            clean[slug] = value
            has_content = has_content or _has_content(value, scalar_type)
        if has_content:
            sanitized.append(clean)
    return truncate_items(sanitized, max_items)


def truncate_items(items: list[dict[str, str]], max_items: int = ARRAY_MAX_ITEMS) -> list[dict[str, str]]:
    """Keep the first ``max_items`` items, in order."""
    return items[:max_items]
