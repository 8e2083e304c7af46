"""Structured content blob handling."""

from docfields.content.codec import (
    ARRAY_MAX_ITEMS,
    build_field_fragment,
    decode_array_items,
    decode_content,
    encode_array_items,
    encode_fields,
    repair_unescaped_unicode,
)
from docfields.content.merge import ContentMerger, rebuild_content
from docfields.content.sanitize import (
    contains_html,
    sanitize_array_items,
    sanitize_value,
    strip_dangerous_elements,
    truncate_items,
)

__all__ = [
    "ARRAY_MAX_ITEMS",
    "ContentMerger",
    "build_field_fragment",
    "contains_html",
    "decode_array_items",
    "decode_content",
    "encode_array_items",
    "encode_fields",
    "rebuild_content",
    "repair_unescaped_unicode",
    "sanitize_array_items",
    "sanitize_value",
    "strip_dangerous_elements",
    "truncate_items",
]
