"""Template attach and re-parse workflow against the schema store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docfields import logger
from docfields.exceptions import TemplateParseError
from docfields.logging import bind_request_context, clear_request_context
from docfields.schema.builder import extract_schema
from docfields.typing.models import ReparseOutcome

if TYPE_CHECKING:
    from pathlib import Path

    from docfields.schema_store import SchemaStore
    from docfields.typing.models import Schema
    from docfields.typing.protocol import TemplateTextSource

MESSAGE_UPDATED = "Schema updated successfully."
MESSAGE_DETACHED = "No template associated with this classification; schema cleared."


def preview_template(
    path: Path,
    *,
    template_id: str | int = "",
    source: TemplateTextSource | None = None,
) -> Schema:
    """Parse a template without touching the store.

    Args:
        path (Path): Template path.
        template_id (str | int): Caller-supplied source identifier.
        source (TemplateTextSource | None): Text extraction collaborator.

    Raises:
        TemplateParseError: If the file cannot be read or is not a recognized container.

    Returns:
        Schema: Parsed schema.
    """
    return extract_schema(path, template_id=template_id, source=source)


def reparse_template(
    store: SchemaStore,
    classification_id: str,
    path: Path,
    *,
    template_id: str | int = "",
    source: TemplateTextSource | None = None,
    clear_on_failure: bool = False,
) -> ReparseOutcome:
    """Parse a template and replace the classification's schema.

    A successful parse replaces the stored schema wholesale; document values
    for fields that disappeared become unknown fields on the next save. A
    failed parse leaves the stored schema untouched unless the caller asks
    for it to be cleared with ``clear_on_failure``.

    Args:
        store (SchemaStore): Schema store.
        classification_id (str): Owning classification.
        path (Path): Template path.
        template_id (str | int): Caller-supplied source identifier.
        source (TemplateTextSource | None): Text extraction collaborator.
        clear_on_failure (bool): Whether a parse failure clears the stored schema.

    Raises:
        SchemaStoreError: If the store rejects the new schema.
        StoreUnavailableError: If the store cannot be reached.

    Returns:
        ReparseOutcome: Outcome with the stored schema or the failure message.
    """
    bind_request_context(classification_id=str(classification_id))
    try:
        try:
            schema = extract_schema(path, template_id=template_id, source=source)
        except TemplateParseError as exc:
            logger.warning("Template parse failed", extra={"code": exc.code, "path": exc.path})
            if clear_on_failure:
                store.delete(classification_id)
            return ReparseOutcome(
                classification_id=str(classification_id),
                success=False,
                message=str(exc),
                error_code=exc.code,
                cleared=clear_on_failure,
            )

        store.save(classification_id, schema)
        return ReparseOutcome(
            classification_id=str(classification_id),
            success=True,
            message=MESSAGE_UPDATED,
            parsed=schema,
            summary=store.summarize(schema),
        )
    finally:
        clear_request_context()


def attach_template(
    store: SchemaStore,
    classification_id: str,
    path: Path | None,
    *,
    template_id: str | int = "",
    source: TemplateTextSource | None = None,
) -> ReparseOutcome:
    """Handle a template being attached to, or detached from, a classification.

    Detaching, or attaching a template that cannot be parsed, clears the
    stored schema.

    Args:
        store (SchemaStore): Schema store.
        classification_id (str): Owning classification.
        path (Path | None): Attached template, or None when detached.
        template_id (str | int): Caller-supplied source identifier.
        source (TemplateTextSource | None): Text extraction collaborator.

    Returns:
        ReparseOutcome: Outcome of the parse, or of the clear when detached.
    """
    if path is None:
        store.delete(classification_id)
        return ReparseOutcome(
            classification_id=str(classification_id),
            success=True,
            message=MESSAGE_DETACHED,
            cleared=True,
        )
    return reparse_template(
        store,
        classification_id,
        path,
        template_id=template_id,
        source=source,
        clear_on_failure=True,
    )
