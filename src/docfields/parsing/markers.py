"""Single-pass scanner for `[slug;key='value']` template markers.

The scanner walks the flattened template text once, left to right, and never
rewinds. Each character moves a small state machine; a marker is emitted when
its closing bracket is reached in a valid state. Anything that breaks the
grammar (an invalid slug character, a missing ``=``, a quoted value cut by a
newline or the end of the text, a new ``[`` before the current marker is
closed) drops the marker in progress and the scan carries on from the current
position. This keeps parsing linear in the input length whatever the nesting
of brackets in the text.

Scopes are tracked alongside the scan:

* ``[items;block=begin]`` / ``[items;block=end]`` open and close a free block
  (a stack holding at most one open scope per slug);
* ``[items.title;block=tbs:row]`` declares ``items`` as a table-row repeater,
  each table row being its own repeat unit, so no stack is involved;
* a dotted slug ``items.title`` is a field of repeater ``items``.
"""

from __future__ import annotations

import string
from enum import Enum, auto
from typing import TYPE_CHECKING

from docfields import logger
from docfields.typing.models.marker import (
    BLOCK_BEGIN,
    BLOCK_END,
    BLOCK_TABLE_ROW,
    MarkerScope,
    TemplateMarker,
)

if TYPE_CHECKING:
    from pathlib import Path

    from docfields.typing.protocol import TemplateTextSource

_SLUG_CHARS = frozenset(string.ascii_letters + string.digits + "_.")
_KEY_CHARS = frozenset(string.ascii_letters + string.digits + "_:.-")
_INLINE_SPACE = frozenset(" \t")


class _State(Enum):
    OUTSIDE = auto()
    SLUG = auto()
    KEY = auto()
    VALUE_START = auto()
    BARE_VALUE = auto()
    QUOTED_VALUE = auto()
    AFTER_QUOTE = auto()


class ScopeTracker:
    """Assign scopes to raw markers in encounter order."""

    def __init__(self) -> None:
        self._open: list[str] = []
        self._table_rows: set[str] = set()

    @property
    def open_scopes(self) -> tuple[str, ...]:
        return tuple(self._open)

    def place(self, slug: str, attributes: dict[str, str], offset: int) -> TemplateMarker:
        """Build a marker with its scope and update the open blocks.

        Args:
            slug (str): Raw slug as written in the template.
            attributes (dict[str, str]): Parsed attributes, lowercase keys.
            offset (int): Position of the opening bracket.

        Returns:
            TemplateMarker: Scoped marker.
        """
        marker = TemplateMarker(slug=slug, attributes=attributes, offset=offset)
        block = marker.block
        owner = marker.repeater_slug or marker.slug.strip(".")

        if block == BLOCK_BEGIN:
            if owner in self._open:
                logger.debug("Repeater block already open", extra={"repeater": owner, "offset": offset})
            else:
                self._open.append(owner)
            scope = MarkerScope.in_repeater(owner)
        elif block == BLOCK_END:
            if owner in self._open:
                del self._open[len(self._open) - 1 - self._open[::-1].index(owner)]
            else:
                logger.debug("Repeater block closed without begin", extra={"repeater": owner, "offset": offset})
            scope = MarkerScope.in_repeater(owner)
        elif block == BLOCK_TABLE_ROW:
            self._table_rows.add(owner)
            scope = MarkerScope.in_table_row(owner)
        elif marker.repeater_slug is None:
            scope = MarkerScope.top_level()
        elif owner in self._table_rows and owner not in self._open:
            scope = MarkerScope.in_table_row(owner)
        else:
            scope = MarkerScope.in_repeater(owner)

        return marker.model_copy(update={"scope": scope})


class MarkerScanner:
    """Linear marker scanner; one instance per text stream."""

    def __init__(self) -> None:
        self.tracker = ScopeTracker()
        self.dropped = 0
        self._reset(0)

    def _reset(self, start: int) -> None:
        self._start = start
        self._slug = ""
        self._attributes: dict[str, str] = {}
        self._key = ""
        self._mark = start + 1
        self._value_parts: list[str] = []

    def _drop(self, state: _State) -> _State:
        if state != _State.OUTSIDE:
            self.dropped += 1
        return _State.OUTSIDE

    def _restart(self, state: _State, position: int) -> _State:
        self._drop(state)
        self._reset(position)
        return _State.SLUG

    def _store(self, value: str) -> None:
        self._attributes[self._key] = value
        self._key = ""

    def scan(self, text: str) -> list[TemplateMarker]:
        """Extract all well-formed markers from ``text``.

        Args:
            text (str): Flattened template text.

        Returns:
            list[TemplateMarker]: Markers in encounter order.
        """
        markers: list[TemplateMarker] = []
        state = _State.OUTSIDE

        for position, char in enumerate(text):
            if state == _State.OUTSIDE:
                if char == "[":
                    self._reset(position)
                    state = _State.SLUG
                continue

            if state == _State.QUOTED_VALUE:
                if char == "'":
                    self._value_parts.append(text[self._mark : position])
                    state = _State.AFTER_QUOTE
                elif char == "\n":
                    state = self._drop(state)
                continue

            if char == "[":
                state = self._restart(state, position)
                continue
            if char == "\n":
                state = self._drop(state)
                continue

            if state == _State.SLUG:
                if char in _SLUG_CHARS:
                    continue
                slug = text[self._mark : position]
                if char in ";]" and slug.strip("."):
                    self._slug = slug
                    if char == "]":
                        markers.append(self.tracker.place(self._slug, self._attributes, self._start))
                        state = _State.OUTSIDE
                    else:
                        self._mark = position + 1
                        state = _State.KEY
                else:
                    state = self._drop(state)

            elif state == _State.KEY:
                if char in _KEY_CHARS or char in _INLINE_SPACE:
                    continue
                key = text[self._mark : position].strip()
                if char == "=" and key and all(item in _KEY_CHARS for item in key):
                    self._key = key.lower()
                    state = _State.VALUE_START
                elif char == "]" and not key:
                    markers.append(self.tracker.place(self._slug, self._attributes, self._start))
                    state = _State.OUTSIDE
                elif char == ";" and not key:
                    self._mark = position + 1
                else:
                    state = self._drop(state)

            elif state == _State.VALUE_START:
                if char in _INLINE_SPACE:
                    continue
                if char == "'":
                    self._value_parts = []
                    self._mark = position + 1
                    state = _State.QUOTED_VALUE
                elif char in ";]":
                    self._store("")
                    state = self._close_or_next(char, position, markers)
                else:
                    self._mark = position
                    state = _State.BARE_VALUE

            elif state == _State.BARE_VALUE:
                if char in ";]":
                    self._store(text[self._mark : position].strip())
                    state = self._close_or_next(char, position, markers)

            elif state == _State.AFTER_QUOTE:
                if char == "'" and text[position - 1] == "'":
                    # Doubled quote inside a quoted value stands for a literal quote.
                    self._value_parts.append("'")
                    self._mark = position + 1
                    state = _State.QUOTED_VALUE
                elif char in ";]":
                    self._store("".join(self._value_parts))
                    state = self._close_or_next(char, position, markers)
                elif char not in _INLINE_SPACE:
                    state = self._drop(state)

        self._drop(state)
        if self.dropped:
            logger.debug("Dropped malformed markers", extra={"count": self.dropped})
        return markers

    def _close_or_next(self, char: str, position: int, markers: list[TemplateMarker]) -> _State:
        if char == "]":
            markers.append(self.tracker.place(self._slug, self._attributes, self._start))
            return _State.OUTSIDE
        self._mark = position + 1
        return _State.KEY


def scan_markers(text: str) -> list[TemplateMarker]:
    """Extract markers from a flattened text stream.

    Args:
        text (str): Flattened template text with marker brackets intact.

    Returns:
        list[TemplateMarker]: Markers in encounter order, each tagged with its scope.
    """
    return MarkerScanner().scan(text)


def parse_template(path: Path, *, source: TemplateTextSource | None = None) -> list[TemplateMarker]:
    """Read a template container and scan its markers.

    Args:
        path (Path): Template path.
        source (TemplateTextSource | None): Text extraction collaborator.

    Raises:
        TemplateParseError: If the file cannot be read or is not a recognized container.

    Returns:
        list[TemplateMarker]: Markers in encounter order.
    """
    if source is None:
        from docfields.parsing.template_text import ZipTemplateTextSource  # noqa: PLC0415

        source = ZipTemplateTextSource()
    return scan_markers(source.extract_text(path))
