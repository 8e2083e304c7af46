"""Core domain model exports."""

from docfields.typing.models.content import ContentRebuild, StructuredFieldValue, ValidationMismatch
from docfields.typing.models.marker import MarkerScope, TemplateMarker
from docfields.typing.models.schema import (
    CURRENT_SCHEMA_VERSION,
    FieldDefinition,
    LegacyField,
    RepeaterDefinition,
    Schema,
    SchemaMeta,
    SchemaSummary,
)
from docfields.typing.models.workflow import ReparseOutcome

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "ContentRebuild",
    "FieldDefinition",
    "LegacyField",
    "MarkerScope",
    "ReparseOutcome",
    "RepeaterDefinition",
    "Schema",
    "SchemaMeta",
    "SchemaSummary",
    "StructuredFieldValue",
    "TemplateMarker",
    "ValidationMismatch",
]
