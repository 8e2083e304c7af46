"""Template text extraction and marker scanning."""

from docfields.parsing.markers import MarkerScanner, ScopeTracker, parse_template, scan_markers
from docfields.parsing.template_text import ZipTemplateTextSource, detect_template_type, flatten_xml_text

__all__ = [
    "MarkerScanner",
    "ScopeTracker",
    "ZipTemplateTextSource",
    "detect_template_type",
    "flatten_xml_text",
    "parse_template",
    "scan_markers",
]
