"""Document content models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from docfields.typing.enums import LegacyType


class StructuredFieldValue(BaseModel):
    """Value of one field inside a structured content blob."""

    model_config = ConfigDict(extra="forbid")

    slug: str
    type: LegacyType | None = None
    value: str = ""


class ValidationMismatch(BaseModel):
    """Constraint violation reported for a single submitted value."""

    model_config = ConfigDict(extra="forbid")

    slug: str
    message: str
    item_index: int | None = None
    item_field: str | None = None


class ContentRebuild(BaseModel):
    """Outcome of rebuilding a document blob on save."""

    model_config = ConfigDict(extra="forbid")

    blob: str
    fields: dict[str, StructuredFieldValue] = Field(default_factory=dict)
    unknown_slugs: list[str] = Field(default_factory=list)
    mismatches: list[ValidationMismatch] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.mismatches
