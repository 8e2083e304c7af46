"""Typing-centric domain modules."""

from docfields.typing.enums import BlockStyle, DataType, FieldType, LegacyType, ScopeKind, TemplateType
from docfields.typing.models import (
    CURRENT_SCHEMA_VERSION,
    ContentRebuild,
    FieldDefinition,
    LegacyField,
    MarkerScope,
    RepeaterDefinition,
    ReparseOutcome,
    Schema,
    SchemaMeta,
    SchemaSummary,
    StructuredFieldValue,
    TemplateMarker,
    ValidationMismatch,
)
from docfields.typing.protocol import SchemaBackend, TemplateTextSource

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "BlockStyle",
    "ContentRebuild",
    "DataType",
    "FieldDefinition",
    "FieldType",
    "LegacyField",
    "LegacyType",
    "MarkerScope",
    "RepeaterDefinition",
    "ReparseOutcome",
    "Schema",
    "SchemaBackend",
    "SchemaMeta",
    "SchemaSummary",
    "ScopeKind",
    "StructuredFieldValue",
    "TemplateMarker",
    "TemplateTextSource",
    "TemplateType",
    "ValidationMismatch",
]
