"""Schema construction and conversion."""

from docfields.schema.builder import SchemaBuilder, build_schema, extract_schema
from docfields.schema.converter import collapse_type, legacy_item_types, legacy_payload, to_legacy
from docfields.schema.resolver import humanize_slug, resolve_field, resolve_field_type, sanitize_slug

__all__ = [
    "SchemaBuilder",
    "build_schema",
    "collapse_type",
    "extract_schema",
    "humanize_slug",
    "legacy_item_types",
    "legacy_payload",
    "resolve_field",
    "resolve_field_type",
    "sanitize_slug",
]
