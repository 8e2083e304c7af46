from __future__ import annotations

import json

import pytest

from docfields.content.codec import (
    CLOSE_MARKER,
    build_field_fragment,
    decode_array_items,
    decode_content,
    encode_array_items,
    encode_fields,
    repair_unescaped_unicode,
)
from docfields.typing.enums import LegacyType
from docfields.typing.models import StructuredFieldValue


def _esc(char: str) -> str:
    return "\\" + "u" + format(ord(char), "04X")


def _value(slug: str, value: str, field_type: LegacyType | None = None) -> StructuredFieldValue:
    return StructuredFieldValue(slug=slug, type=field_type, value=value)


def test_build_field_fragment_layout() -> None:
    fragment = build_field_fragment("title", "Annual report", LegacyType.SINGLE)

    assert fragment == (
        '<!-- docfields-field slug="title" type="single" -->\nAnnual report\n<!-- /docfields-field -->'
    )


@pytest.mark.parametrize("field_type", [None, "", "html", "number"])
def test_build_field_fragment_omits_unknown_types(field_type: str | None) -> None:
    fragment = build_field_fragment("title", "x", field_type)

    assert fragment.startswith('<!-- docfields-field slug="title" -->\n')


def test_build_field_fragment_skips_empty_slug() -> None:
    assert build_field_fragment("***", "x", LegacyType.RICH) == ""


def test_encode_fields_separates_fragments_with_blank_line() -> None:
    blob = encode_fields([_value("a", "1", LegacyType.SINGLE), _value("b", "2", LegacyType.TEXTAREA)])

    first, second = blob.split("\n\n")
    assert first.endswith(CLOSE_MARKER)
    assert second.startswith('<!-- docfields-field slug="b" type="textarea" -->')


def test_encode_fields_accepts_mapping_and_keeps_order() -> None:
    values = {"z": _value("z", "last"), "a": _value("a", "first")}

    assert list(decode_content(encode_fields(values))) == ["z", "a"]


def test_rich_value_round_trip() -> None:
    blob = encode_fields([_value("bio", "<p>Hi</p>", LegacyType.RICH)])

    decoded = decode_content(blob)

    assert decoded == {"bio": _value("bio", "<p>Hi</p>", LegacyType.RICH)}


@pytest.mark.parametrize(
    "value",
    [
        "",
        "one line",
        "line one\nline two",
        "\nleading and trailing newlines\n",
        "\n",
        "  padded  ",
        "<table><tr><td>cell</td></tr></table>",
        '[{"title":"x"}]',
        "caf\xe9 na\xefve",
    ],
)
def test_decode_inverts_encode(value: str) -> None:
    values = {
        "first": _value("first", value, LegacyType.TEXTAREA),
        "second": _value("second", value),
        "third": _value("third", "tail", LegacyType.ARRAY),
    }

    assert decode_content(encode_fields(values)) == values


@pytest.mark.parametrize("value", ["x\r", "\rx", "\r\nwindows line\r\n", "\r"])
def test_carriage_returns_survive_round_trip(value: str) -> None:
    values = {"notes": _value("notes", value, LegacyType.TEXTAREA)}

    assert decode_content(encode_fields(values)) == values


def test_fragment_without_close_marker_is_dropped_whole() -> None:
    blob = (
        '<!-- docfields-field slug="broken" type="single" -->\nhalf a value\n\n'
        '<!-- docfields-field slug="ok" type="single" -->\nfine\n<!-- /docfields-field -->'
    )

    decoded = decode_content(blob)

    assert "broken" not in decoded
    assert decoded["ok"].value == "fine"


def test_trailing_fragment_without_close_marker_is_dropped() -> None:
    blob = encode_fields([_value("ok", "fine")]) + '\n\n<!-- docfields-field slug="cut" -->\npartial'

    assert list(decode_content(blob)) == ["ok"]


def test_decode_tolerates_attribute_order_and_spacing() -> None:
    blob = '<!--docfields-field   type="rich"  slug="Body"-->\n<b>x</b>\n<!-- /docfields-field -->'

    assert decode_content(blob) == {"body": _value("body", "<b>x</b>", LegacyType.RICH)}


def test_decode_ignores_unknown_type_and_missing_slug() -> None:
    blob = (
        '<!-- docfields-field slug="a" type="html" -->\nx\n<!-- /docfields-field -->\n\n'
        '<!-- docfields-field type="single" -->\ny\n<!-- /docfields-field -->'
    )

    assert decode_content(blob) == {"a": _value("a", "x")}


def test_decode_plain_text_gives_empty_map() -> None:
    assert decode_content("") == {}
    assert decode_content("Legacy body without fragments") == {}


def test_encode_array_items_hex_escapes_markup_characters() -> None:
    encoded = encode_array_items([{"title": "a\"b<c>d&e'f"}])

    expected = '[{"title":"a' + "".join(_esc(char) + nxt for char, nxt in zip("\"<>&'", "bcdef", strict=True)) + '"}]'
    assert encoded == expected
    assert "<" not in encoded
    assert "&" not in encoded
    assert "'" not in encoded


def test_encode_array_items_escapes_non_ascii() -> None:
    encoded = encode_array_items([{"name": "Jos\xe9"}])

    assert encoded.isascii()
    assert json.loads(encoded) == [{"name": "Jos\xe9"}]


def test_array_items_round_trip() -> None:
    items = [
        {"title": "First <b>bold</b>", "content": "Tom & Jerry's \"show\""},
        {"title": "Second", "content": "line\nbreak and back\\slash"},
    ]

    assert decode_array_items(encode_array_items(items)) == items


def test_decode_array_items_undoes_entity_encoding() -> None:
    value = "[{&quot;title&quot;:&quot;A &amp;amp; B&quot;}]"

    assert decode_array_items(value) == [{"title": "A &amp; B"}]


def test_decode_array_items_normalizes_items() -> None:
    value = json.dumps([{"Title": "x", "count": 3, "flag": True, "off": False, "nested": {"a": 1}}, "skip", None])

    assert decode_array_items(value) == [{"title": "x", "count": "3", "flag": "1", "off": "", "nested": ""}]


def test_decode_array_items_caps_item_count() -> None:
    value = json.dumps([{"n": str(index)} for index in range(25)])

    items = decode_array_items(value)

    assert len(items) == 20
    assert items[0] == {"n": "0"}
    assert items[-1] == {"n": "19"}


def test_decode_array_items_without_limit() -> None:
    value = json.dumps([{"n": str(index)} for index in range(25)])

    assert len(decode_array_items(value, max_items=None)) == 25


@pytest.mark.parametrize("value", ["", "   ", "not json", "42", '"text"'])
def test_decode_array_items_rejects_non_arrays(value: str) -> None:
    assert decode_array_items(value) == []


def test_decode_array_items_repairs_lost_backslashes() -> None:
    value = json.dumps([{"city": "Espau00f1a"}])

    assert decode_array_items(value) == [{"city": "Espa\xf1a"}]


def test_repair_unescaped_unicode() -> None:
    assert repair_unescaped_unicode("caf" + "u00e9") == "caf\xe9"
    assert repair_unescaped_unicode("U00C9t" + "u00e9") == "\xc9t\xe9"


def test_repair_only_runs_when_trigger_present() -> None:
    assert repair_unescaped_unicode("bug1234 menu2014") == "bug1234 menu2014"


def test_repair_leaves_surrogate_halves() -> None:
    assert repair_unescaped_unicode("u00e9 ud83d") == "\xe9 ud83d"


def test_repair_misfires_on_matching_plain_text() -> None:
    # Known limitation: ordinary text shaped like an escape is rewritten too.
    assert repair_unescaped_unicode("menu0042") == "menB"
