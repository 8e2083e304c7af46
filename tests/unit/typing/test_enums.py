from __future__ import annotations

import pytest

from docfields.typing.enums import BlockStyle, FieldType, LegacyType, TemplateType


def test_legacy_type_from_str() -> None:
    assert LegacyType.from_str("rich") == LegacyType.RICH


def test_template_type_from_str_raises_on_invalid_value() -> None:
    with pytest.raises(ValueError, match="Unsupported TemplateType value"):
        TemplateType.from_str("pdf")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("NUMBER", FieldType.NUMBER),
        ("  email ", FieldType.EMAIL),
        ("select", FieldType.TEXTAREA),
        (None, FieldType.TEXTAREA),
        (3, FieldType.TEXTAREA),
    ],
)
def test_field_type_coerce_falls_back_to_default(raw: object, expected: FieldType) -> None:
    assert FieldType.coerce(raw, FieldType.TEXTAREA) == expected


def test_to_str() -> None:
    assert BlockStyle.TABLE_ROW.to_str() == "table-row"
