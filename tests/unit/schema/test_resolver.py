from __future__ import annotations

import pytest

from docfields.parsing.markers import scan_markers
from docfields.schema.resolver import DATA_TYPES, humanize_slug, resolve_field, resolve_field_type, sanitize_slug
from docfields.typing.enums import DataType, FieldType


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Name", "name"),
        ("resolution-title", "resolutiontitle"),
        ("teléfono", "telfono"),
        ("a b.c", "abc"),
        ("***", ""),
    ],
)
def test_sanitize_slug(raw: str, expected: str) -> None:
    assert sanitize_slug(raw) == expected


def test_humanize_slug() -> None:
    assert humanize_slug("resolution_title") == "Resolution Title"
    assert humanize_slug("name") == "Name"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, FieldType.TEXTAREA),
        ("", FieldType.TEXTAREA),
        ("wysiwyg", FieldType.TEXTAREA),
        ("HTML", FieldType.HTML),
        (" email ", FieldType.EMAIL),
    ],
)
def test_resolve_field_type_defaults_to_textarea(raw: str | None, expected: FieldType) -> None:
    assert resolve_field_type(raw) == expected


def test_every_field_type_has_a_data_type() -> None:
    assert set(DATA_TYPES) == set(FieldType)
    assert DATA_TYPES[FieldType.NUMBER] == DataType.NUMBER
    assert DATA_TYPES[FieldType.DATE] == DataType.DATE
    assert DATA_TYPES[FieldType.EMAIL] == DataType.TEXT


def test_resolve_field_copies_constraints_and_passthrough_metadata() -> None:
    marker = scan_markers(
        "[amount;type='number';title='Amount';placeholder='0';description='Total';"
        "minvalue='1';maxvalue='100';length='5';pattern='[0-9]+';patternmsg='Digits only';ope='upper';frm='%d']",
    )[0]

    definition = resolve_field(marker, "amount")

    assert definition.slug == "amount"
    assert definition.label == "Amount"
    assert definition.type == FieldType.NUMBER
    assert definition.data_type == DataType.NUMBER
    assert definition.placeholder == "0"
    assert definition.description == "Total"
    assert definition.minvalue == "1"
    assert definition.maxvalue == "100"
    assert definition.length == "5"
    assert definition.pattern == "[0-9]+"
    assert definition.patternmsg == "Digits only"
    assert definition.case_transform == "upper"
    assert definition.date_format == "%d"


def test_resolve_field_humanizes_label_without_title() -> None:
    marker = scan_markers("[resolution_title]")[0]

    definition = resolve_field(marker, "resolution_title")

    assert definition.label == "Resolution Title"
    assert definition.type == FieldType.TEXTAREA
    assert definition.data_type == DataType.TEXT
