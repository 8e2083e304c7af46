"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    @classmethod
    def coerce(cls, value: object, default: _EnumMixin) -> _EnumMixin:
        """Parse a loosely typed value, falling back to ``default``.

        Args:
            value: Raw value, usually a marker attribute or stored tag.
            default: Member returned when ``value`` is not supported.

        Returns:
            _EnumMixin: Parsed enum value or ``default``.
        """
        if not isinstance(value, str):
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            return default

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class FieldType(_EnumMixin):
    """Semantic field type declared by a template marker."""

    TEXT = "text"
    TEXTAREA = "textarea"
    HTML = "html"
    NUMBER = "number"
    DATE = "date"
    EMAIL = "email"
    URL = "url"


class DataType(_EnumMixin):
    """Coarse data type used for value normalization."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


class LegacyType(_EnumMixin):
    """Three-way editor type of the legacy schema view, plus repeaters."""

    SINGLE = "single"
    TEXTAREA = "textarea"
    RICH = "rich"
    ARRAY = "array"


class BlockStyle(_EnumMixin):
    """How a repeater is laid out in the template."""

    FREE_BLOCK = "free-block"
    TABLE_ROW = "table-row"


class TemplateType(_EnumMixin):
    """Recognized template containers."""

    DOCX = "docx"
    ODT = "odt"


class ScopeKind(_EnumMixin):
    """Where a template marker was found."""

    TOP_LEVEL = "top-level"
    REPEATER = "repeater"
    TABLE_ROW = "table-row"
