"""Value processing helpers."""

from docfields.processing.normalization import normalize_date, normalize_decimal, normalize_typed_value

__all__ = [
    "normalize_date",
    "normalize_decimal",
    "normalize_typed_value",
]
