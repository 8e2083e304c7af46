"""Aggregate resolved markers into a versioned schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from docfields import logger
from docfields.parsing.markers import scan_markers
from docfields.schema.resolver import humanize_slug, resolve_field, sanitize_slug
from docfields.typing.enums import BlockStyle, ScopeKind, TemplateType
from docfields.typing.models import (
    CURRENT_SCHEMA_VERSION,
    FieldDefinition,
    RepeaterDefinition,
    Schema,
    SchemaMeta,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from docfields.typing.models import TemplateMarker
    from docfields.typing.protocol import TemplateTextSource


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class _RepeaterDraft:
    slug: str
    label: str
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    table_row: bool = False


class SchemaBuilder:
    """Collect markers in encounter order and produce a `Schema`."""

    def __init__(
        self,
        *,
        template_type: TemplateType | str = "",
        template_id: str | int = "",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.template_type = str(template_type)
        self.template_id = str(template_id)
        self._clock = clock
        self._fields: dict[str, FieldDefinition] = {}
        self._repeaters: dict[str, _RepeaterDraft] = {}

    def add(self, marker: TemplateMarker) -> None:
        """Register one marker.

        Args:
            marker (TemplateMarker): Scoped marker from the scanner.
        """
        if marker.scope.kind == ScopeKind.TOP_LEVEL:
            if marker.is_control:
                return
            slug = sanitize_slug(marker.slug)
            if slug and slug not in self._fields:
                self._fields[slug] = resolve_field(marker, slug)
            return

        draft = self._draft(marker)
        if draft is None:
            return
        if marker.scope.kind == ScopeKind.TABLE_ROW:
            draft.table_row = True
        if marker.is_control or not marker.is_dotted:
            return

        slug = sanitize_slug(marker.field_slug)
        if slug and slug not in draft.fields:
            draft.fields[slug] = resolve_field(marker, slug)

    def extend(self, markers: Iterable[TemplateMarker]) -> SchemaBuilder:
        for marker in markers:
            self.add(marker)
        return self

    def _draft(self, marker: TemplateMarker) -> _RepeaterDraft | None:
        slug = sanitize_slug(marker.scope.repeater or "")
        if not slug:
            return None
        draft = self._repeaters.get(slug)
        if draft is None:
            draft = _RepeaterDraft(slug=slug, label=humanize_slug(slug))
            self._repeaters[slug] = draft
        title = marker.attributes.get("title", "").strip()
        if marker.is_control and title:
            draft.label = title
        return draft

    def build(self) -> Schema:
        """Return the schema for the markers seen so far.

        Returns:
            Schema: Versioned schema; empty when no fillable marker was found.
        """
        repeaters = [
            RepeaterDefinition(
                slug=draft.slug,
                label=draft.label,
                fields=list(draft.fields.values()),
                block_style=BlockStyle.TABLE_ROW if draft.table_row else BlockStyle.FREE_BLOCK,
            )
            for draft in self._repeaters.values()
            if draft.fields
        ]
        repeater_slugs = {item.slug for item in repeaters}
        fields = [item for item in self._fields.values() if item.slug not in repeater_slugs]
        if len(fields) != len(self._fields):
            logger.debug("Top-level fields shadowed by repeaters dropped", extra={"repeaters": sorted(repeater_slugs)})

        return Schema(
            version=CURRENT_SCHEMA_VERSION,
            fields=fields,
            repeaters=repeaters,
            meta=SchemaMeta(
                template_type=self.template_type,
                template_id=self.template_id,
                parsed_at=self._clock().isoformat(timespec="seconds"),
            ),
        )


def build_schema(
    markers: Iterable[TemplateMarker],
    *,
    template_type: TemplateType | str = "",
    template_id: str | int = "",
) -> Schema:
    """Build a schema from scanned markers.

    Args:
        markers (Iterable[TemplateMarker]): Markers in encounter order.
        template_type (TemplateType | str): Container type, or empty when unknown.
        template_id (str | int): Caller-supplied source identifier.

    Returns:
        Schema: Built schema.
    """
    return SchemaBuilder(template_type=template_type, template_id=template_id).extend(markers).build()


def extract_schema(
    path: Path,
    *,
    template_id: str | int = "",
    source: TemplateTextSource | None = None,
) -> Schema:
    """Read a template and build its schema.

    Args:
        path (Path): Template path.
        template_id (str | int): Caller-supplied source identifier.
        source (TemplateTextSource | None): Text extraction collaborator.

    Raises:
        TemplateParseError: If the file cannot be read or is not a recognized container.

    Returns:
        Schema: Built schema.
    """
    if source is None:
        from docfields.parsing.template_text import ZipTemplateTextSource  # noqa: PLC0415

        source = ZipTemplateTextSource()

    template_type = source.detect_type(path)
    markers = scan_markers(source.extract_text(path))
    schema = build_schema(markers, template_type=template_type, template_id=template_id)
    logger.info(
        "Template parsed",
        extra={
            "path": str(path),
            "template_type": schema.meta.template_type,
            "markers": len(markers),
            "fields": len(schema.fields),
            "repeaters": len(schema.repeaters),
        },
    )
    return schema
