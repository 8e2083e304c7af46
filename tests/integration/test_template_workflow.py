from __future__ import annotations

import zipfile
from typing import TYPE_CHECKING

from docfields.content import decode_array_items, decode_content, rebuild_content
from docfields.schema.converter import to_legacy
from docfields.schema_store import FilesystemSchemaBackend, SchemaStore
from docfields.templates import reparse_template
from docfields.typing.enums import BlockStyle, FieldType, LegacyType

if TYPE_CHECKING:
    from pathlib import Path


def _paragraph(*runs: str) -> str:
    return "<w:p>" + "".join(f"<w:r><w:t>{run}</w:t></w:r>" for run in runs) + "</w:p>"


def _docx(path: Path, body: str, header: str | None = None) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr("word/document.xml", f"<w:document><w:body>{body}</w:body></w:document>")
        if header is not None:
            archive.writestr("word/header1.xml", f"<w:hdr>{header}</w:hdr>")
    return path


def _invoice_template(path: Path, *, with_reference: bool = True) -> Path:
    body = (
        _paragraph("[na", "me;type='text';title='Client name']")
        + _paragraph("[items;block=begin;title='Line items']")
        + _paragraph("[items.title;type='text'] ", "[items.amount;type='number';minvalue='0']")
        + _paragraph("[items;block=end]")
        + _paragraph("Broken [marker;title='never closed")
    )
    header = _paragraph("[ref;type='text';length='8']") if with_reference else None
    return _docx(path, body, header)


def test_template_to_content_round_trip(tmp_path: Path) -> None:
    store = SchemaStore(FilesystemSchemaBackend(root=tmp_path / "schemas"))

    outcome = reparse_template(store, "invoices", _invoice_template(tmp_path / "invoice.docx"), template_id=31)

    assert outcome.success
    schema = store.get("invoices")
    assert schema is not None
    assert schema.meta.template_type == "docx"
    assert schema.meta.template_id == "31"
    assert [(item.slug, item.label) for item in schema.fields] == [("name", "Client name"), ("ref", "Ref")]
    repeater = schema.repeater("items")
    assert repeater.label == "Line items"
    assert repeater.block_style == BlockStyle.FREE_BLOCK
    assert [(item.slug, item.type) for item in repeater.fields] == [
        ("title", FieldType.TEXT),
        ("amount", FieldType.NUMBER),
    ]
    assert [item.type for item in to_legacy(schema)] == [LegacyType.SINGLE, LegacyType.SINGLE, LegacyType.ARRAY]

    rebuild = rebuild_content(
        schema,
        {
            "name": "ACME",
            "ref": "TOO-LONG-REF",
            "items": [{"title": "Widget", "amount": "-1"}, {"title": "", "amount": ""}],
        },
    )

    assert [(item.slug, item.item_index, item.item_field) for item in rebuild.mismatches] == [
        ("ref", None, None),
        ("items", 0, "amount"),
    ]
    decoded = decode_content(rebuild.blob)
    assert decoded["name"].value == "ACME"
    assert decode_array_items(decoded["items"].value) == [{"title": "Widget", "amount": "-1"}]


def test_removed_template_field_survives_as_unknown(tmp_path: Path) -> None:
    store = SchemaStore(FilesystemSchemaBackend(root=tmp_path / "schemas"))
    reparse_template(store, "invoices", _invoice_template(tmp_path / "v1.docx"))
    first = rebuild_content(store.get("invoices"), {"name": "ACME", "ref": "R-1", "items": [{"title": "Widget"}]})

    reparse_template(store, "invoices", _invoice_template(tmp_path / "v2.docx", with_reference=False))
    second = rebuild_content(store.get("invoices"), {"name": "ACME Corp"}, first.blob)

    assert second.unknown_slugs == ["ref"]
    decoded = decode_content(second.blob)
    assert list(decoded) == ["name", "items", "ref"]
    assert decoded["name"].value == "ACME Corp"
    assert decoded["ref"].type == LegacyType.RICH
    assert decoded["ref"].value == "R-1"
    assert decode_array_items(decoded["items"].value) == [{"title": "Widget", "amount": ""}]


def test_unreadable_template_clears_schema_on_disk(tmp_path: Path) -> None:
    store = SchemaStore(FilesystemSchemaBackend(root=tmp_path / "schemas"))
    reparse_template(store, "invoices", _invoice_template(tmp_path / "invoice.docx"))
    broken = tmp_path / "broken.docx"
    with zipfile.ZipFile(broken, "w") as archive:
        archive.writestr("word/other.xml", "<w:document/>")

    outcome = reparse_template(store, "invoices", broken, clear_on_failure=True)

    assert outcome.error_code == "template_unreadable"
    assert store.get("invoices") is None
    assert not (tmp_path / "schemas" / "invoices").exists()
