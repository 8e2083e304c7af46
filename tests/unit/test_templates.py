from __future__ import annotations

import zipfile
from typing import TYPE_CHECKING

from docfields.exceptions import TemplateParseError
from docfields.schema_store import MemorySchemaBackend, SchemaStore
from docfields.templates import MESSAGE_DETACHED, MESSAGE_UPDATED, attach_template, preview_template, reparse_template
from docfields.typing.enums import FieldType, TemplateType
from docfields.typing.models import FieldDefinition, Schema

if TYPE_CHECKING:
    from pathlib import Path


def _odt(path: Path, text: str) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("content.xml", f"<office:document-content><text:p>{text}</text:p></office:document-content>")
    return path


def _stored_store() -> SchemaStore:
    store = SchemaStore(MemorySchemaBackend())
    store.save("1", Schema(fields=[FieldDefinition(slug="old", label="Old")]))
    return store


def test_preview_template_does_not_store(tmp_path: Path) -> None:
    schema = preview_template(_odt(tmp_path / "form.odt", "[name;type='text']"), template_id="3")

    assert [item.slug for item in schema.fields] == ["name"]
    assert schema.meta.template_type == "odt"
    assert schema.meta.template_id == "3"


def test_reparse_replaces_stored_schema(tmp_path: Path) -> None:
    store = _stored_store()
    template = _odt(tmp_path / "form.odt", "[email;type='email'][items.title;block=tbs:row]")

    outcome = reparse_template(store, "1", template)

    assert outcome.success
    assert outcome.message == MESSAGE_UPDATED
    assert outcome.summary.field_count == 1
    assert outcome.summary.repeater_names == ["items"]
    stored = store.get("1")
    assert stored == outcome.parsed
    assert stored.field("old") is None
    assert stored.field("email").type == FieldType.EMAIL


def test_reparse_failure_can_clear_stored_schema(tmp_path: Path) -> None:
    store = _stored_store()
    broken = tmp_path / "broken.docx"
    broken.write_bytes(b"not a zip")

    outcome = reparse_template(store, "1", broken, clear_on_failure=True)

    assert not outcome.success
    assert outcome.error_code == "template_unreadable"
    assert outcome.cleared
    assert outcome.parsed is None
    assert store.get("1") is None


def test_reparse_failure_keeps_stored_schema_by_default(tmp_path: Path) -> None:
    store = _stored_store()

    outcome = reparse_template(store, "1", tmp_path / "missing.odt")

    assert outcome.error_code == "template_missing"
    assert not outcome.cleared
    assert store.get("1") is not None


def test_reparse_uses_injected_source(mocker, tmp_path: Path) -> None:
    source = mocker.Mock()
    source.detect_type.return_value = TemplateType.DOCX
    source.extract_text.return_value = "[total;type='number']"
    store = SchemaStore(MemorySchemaBackend())

    outcome = reparse_template(store, "9", tmp_path / "form.docx", template_id=5, source=source)

    assert outcome.parsed.meta.template_id == "5"
    source.extract_text.assert_called_once_with(tmp_path / "form.docx")


def test_reparse_reports_source_errors(mocker, tmp_path: Path) -> None:
    source = mocker.Mock()
    source.detect_type.side_effect = TemplateParseError(code="template_invalid", message="Unsupported template")

    outcome = reparse_template(SchemaStore(MemorySchemaBackend()), "9", tmp_path / "form.pdf", source=source)

    assert outcome.error_code == "template_invalid"
    assert outcome.message == "Unsupported template"


def test_attach_without_template_clears_schema() -> None:
    store = _stored_store()

    outcome = attach_template(store, "1", None)

    assert outcome.success
    assert outcome.cleared
    assert outcome.message == MESSAGE_DETACHED
    assert store.get("1") is None


def test_attach_with_template_parses_it(tmp_path: Path) -> None:
    store = SchemaStore(MemorySchemaBackend())

    outcome = attach_template(store, "2", _odt(tmp_path / "form.odt", "[name]"))

    assert outcome.success
    assert store.get("2").field("name") is not None


def test_attach_unreadable_template_clears_schema(tmp_path: Path) -> None:
    store = _stored_store()
    broken = tmp_path / "broken.odt"
    broken.write_bytes(b"not a zip")

    outcome = attach_template(store, "1", broken)

    assert not outcome.success
    assert outcome.error_code == "template_unreadable"
    assert outcome.cleared
    assert store.get("1") is None
