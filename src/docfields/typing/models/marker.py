"""Raw marker tokens emitted by the template scanner."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docfields.typing.enums import ScopeKind

BLOCK_BEGIN = "begin"
BLOCK_END = "end"
BLOCK_TABLE_ROW = "tbs:row"


class MarkerScope(BaseModel):
    """Scope in which a marker was encountered."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ScopeKind = ScopeKind.TOP_LEVEL
    repeater: str | None = None

    @model_validator(mode="after")
    def _check_repeater(self) -> MarkerScope:
        """Require a repeater slug for nested scopes only.

        Raises:
            ValueError: If the repeater slug does not match the scope kind.

        Returns:
            MarkerScope: Validated scope.
        """
        if self.kind == ScopeKind.TOP_LEVEL and self.repeater:
            raise ValueError("Top-level scope cannot name a repeater")
        if self.kind != ScopeKind.TOP_LEVEL and not self.repeater:
            raise ValueError(f"Scope '{self.kind}' requires a repeater slug")
        return self

    @property
    def tag(self) -> str:
        """Return the printable scope tag."""
        if self.kind == ScopeKind.REPEATER:
            return f"repeater:{self.repeater}"
        return self.kind.value

    @classmethod
    def top_level(cls) -> MarkerScope:
        return cls()

    @classmethod
    def in_repeater(cls, slug: str) -> MarkerScope:
        return cls(kind=ScopeKind.REPEATER, repeater=slug)

    @classmethod
    def in_table_row(cls, slug: str) -> MarkerScope:
        return cls(kind=ScopeKind.TABLE_ROW, repeater=slug)


class TemplateMarker(BaseModel):
    """One well-formed `[slug;key='value']` marker."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    slug: str = Field(min_length=1)
    attributes: dict[str, str] = Field(default_factory=dict)
    scope: MarkerScope = Field(default_factory=MarkerScope.top_level)
    offset: int = Field(default=0, ge=0)

    @property
    def block(self) -> str:
        """Return the lowercased `block` attribute, or an empty string."""
        return self.attributes.get("block", "").strip().lower()

    @property
    def is_dotted(self) -> bool:
        return "." in self.slug.strip(".")

    @property
    def repeater_slug(self) -> str | None:
        """Return the repeater prefix of a dotted slug."""
        if not self.is_dotted:
            return None
        return self.slug.strip(".").split(".", 1)[0]

    @property
    def field_slug(self) -> str:
        """Return the field part of the slug (last dotted segment)."""
        return self.slug.strip(".").rsplit(".", 1)[-1]

    @property
    def is_control(self) -> bool:
        """Return whether the marker only delimits a block and declares no field."""
        if self.block in {BLOCK_BEGIN, BLOCK_END}:
            return True
        return self.block == BLOCK_TABLE_ROW and not self.is_dotted
