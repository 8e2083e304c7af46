"""Schema-centric domain models."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from docfields.typing.enums import BlockStyle, DataType, FieldType, LegacyType, TemplateType

CURRENT_SCHEMA_VERSION = 2
SLUG_PATTERN = re.compile(r"^[a-z0-9_]+$")

Bound = Decimal | date


def _check_slug(value: str) -> str:
    if not SLUG_PATTERN.fullmatch(value):
        raise ValueError(f"Invalid slug '{value}': expected characters a-z, 0-9 and '_'")
    return value


def _duplicates(slugs: list[str]) -> list[str]:
    seen: set[str] = set()
    repeated: list[str] = []
    for slug in slugs:
        if slug in seen and slug not in repeated:
            repeated.append(slug)
        seen.add(slug)
    return repeated


def _parse_bound(raw: str, data_type: DataType) -> Bound | None:
    text = raw.strip()
    if not text:
        return None
    if data_type == DataType.NUMBER:
        try:
            return Decimal(text.replace(",", "."))
        except InvalidOperation:
            return None
    if data_type == DataType.DATE:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    return None


class FieldDefinition(BaseModel):
    """Single fillable field resolved from a template marker."""

    model_config = ConfigDict(extra="forbid")

    slug: str
    label: str
    type: FieldType = FieldType.TEXTAREA
    data_type: DataType = DataType.TEXT
    placeholder: str = ""
    description: str = ""
    pattern: str = ""
    patternmsg: str = ""
    minvalue: str = ""
    maxvalue: str = ""
    length: str = ""
    title: str = ""
    case_transform: str = Field(default="", description="Opaque `ope` value for the renderer.")
    date_format: str = Field(default="", description="Opaque `frm` value for the renderer.")

    @field_validator("slug")
    @classmethod
    def _validate_slug(cls, value: str) -> str:
        return _check_slug(value)

    @property
    def min_bound(self) -> Bound | None:
        """Return `minvalue` as a number or date according to `data_type`."""
        return _parse_bound(self.minvalue, self.data_type)

    @property
    def max_bound(self) -> Bound | None:
        """Return `maxvalue` as a number or date according to `data_type`."""
        return _parse_bound(self.maxvalue, self.data_type)

    @property
    def max_length(self) -> int | None:
        """Return `length` as a positive integer, if declared."""
        text = self.length.strip()
        if not text.isdigit():
            return None
        value = int(text)
        return value if value > 0 else None


class RepeaterDefinition(BaseModel):
    """Variable-length list of structurally identical items."""

    model_config = ConfigDict(extra="forbid")

    slug: str
    label: str
    fields: list[FieldDefinition] = Field(default_factory=list)
    block_style: BlockStyle = BlockStyle.FREE_BLOCK

    @field_validator("slug")
    @classmethod
    def _validate_slug(cls, value: str) -> str:
        return _check_slug(value)

    @model_validator(mode="after")
    def _check_unique_fields(self) -> RepeaterDefinition:
        repeated = _duplicates([item.slug for item in self.fields])
        if repeated:
            raise ValueError(f"Repeater '{self.slug}' declares duplicate fields: {', '.join(repeated)}")
        return self

    def field(self, slug: str) -> FieldDefinition | None:
        return next((item for item in self.fields if item.slug == slug), None)


class SchemaMeta(BaseModel):
    """Provenance of a parsed schema."""

    model_config = ConfigDict(extra="forbid")

    template_type: str = ""
    template_id: str = ""
    parsed_at: str = ""

    @field_validator("template_type")
    @classmethod
    def _validate_template_type(cls, value: str) -> str:
        """Accept a recognized container type or an empty string.

        Args:
            value (str): Raw template type.

        Raises:
            ValueError: If the type is neither empty nor a known container.

        Returns:
            str: Normalized template type.
        """
        normalized = value.strip().lower()
        if normalized and normalized not in {member.value for member in TemplateType}:
            raise ValueError(f"Unsupported template type '{value}'")
        return normalized

    @field_validator("template_id", mode="before")
    @classmethod
    def _stringify_template_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if value is None:
            return ""
        return value


class Schema(BaseModel):
    """Versioned field schema owned by one classification."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(default=CURRENT_SCHEMA_VERSION, ge=1, le=CURRENT_SCHEMA_VERSION)
    fields: list[FieldDefinition] = Field(default_factory=list)
    repeaters: list[RepeaterDefinition] = Field(default_factory=list)
    meta: SchemaMeta = Field(default_factory=SchemaMeta)

    @model_validator(mode="after")
    def _check_unique_slugs(self) -> Schema:
        repeated = _duplicates([item.slug for item in self.fields])
        if repeated:
            raise ValueError(f"Duplicate top-level fields: {', '.join(repeated)}")
        repeated = _duplicates([item.slug for item in self.repeaters])
        if repeated:
            raise ValueError(f"Duplicate repeaters: {', '.join(repeated)}")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.repeaters

    def field(self, slug: str) -> FieldDefinition | None:
        return next((item for item in self.fields if item.slug == slug), None)

    def repeater(self, slug: str) -> RepeaterDefinition | None:
        return next((item for item in self.repeaters if item.slug == slug), None)


class LegacyField(BaseModel):
    """Entry of the flattened legacy schema view."""

    model_config = ConfigDict(extra="forbid")

    slug: str
    label: str
    type: LegacyType
    item_schema: dict[str, LegacyField] | None = None

    @model_validator(mode="after")
    def _check_item_schema(self) -> LegacyField:
        if self.type == LegacyType.ARRAY and self.item_schema is None:
            raise ValueError(f"Array entry '{self.slug}' requires an item schema")
        if self.type != LegacyType.ARRAY and self.item_schema is not None:
            raise ValueError(f"Only array entries carry an item schema, got '{self.type}'")
        return self


class SchemaSummary(BaseModel):
    """Cheap digest of a schema for listings."""

    model_config = ConfigDict(extra="forbid")

    field_count: int = 0
    repeater_names: list[str] = Field(default_factory=list)
