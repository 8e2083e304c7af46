"""Template workflow models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from docfields.typing.models.schema import Schema, SchemaSummary


class ReparseOutcome(BaseModel):
    """Result of attaching or re-parsing a classification template."""

    model_config = ConfigDict(extra="forbid")

    classification_id: str
    success: bool
    message: str
    parsed: Schema | None = Field(default=None, description="Schema stored by a successful parse.")
    summary: SchemaSummary = Field(default_factory=SchemaSummary)
    error_code: str | None = None
    cleared: bool = False
