"""Flattened text extraction from ODT/DOCX containers."""

from __future__ import annotations

import html
import re
import zipfile
from pathlib import Path

from docfields import logger
from docfields.exceptions import TemplateParseError
from docfields.typing.enums import TemplateType

_MAIN_PARTS = {
    TemplateType.DOCX: "word/document.xml",
    TemplateType.ODT: "content.xml",
}
_EXTRA_PARTS = {
    TemplateType.DOCX: re.compile(r"^word/(?:header|footer)\d*\.xml$"),
    TemplateType.ODT: re.compile(r"^styles\.xml$"),
}

_LINE_BREAKS = re.compile(
    r"</(?:w:p|w:tc|text:p|text:h|table:table-cell)>|<(?:w:br|w:cr|text:line-break)\b[^>]*/?>",
)
_TABS = re.compile(r"<(?:w:tab|text:tab)\b[^>]*/?>")
_SPACES = re.compile(r"<text:s\b[^>]*/?>")
_TAGS = re.compile(r"<[^>]*>")


def detect_template_type(path: Path) -> TemplateType | None:
    """Detect the container type from the file extension.

    Args:
        path (Path): Template path.

    Returns:
        TemplateType | None: Detected type, or None for unsupported extensions.
    """
    suffix = Path(path).suffix.lower().lstrip(".")
    try:
        return TemplateType(suffix)
    except ValueError:
        return None


def flatten_xml_text(xml: str) -> str:
    """Reduce a WordprocessingML/ODF part to plain text.

    Paragraph, cell and line-break boundaries become newlines; every other tag
    is dropped so that a marker split across formatting runs is joined again.

    Args:
        xml (str): Raw XML part.

    Returns:
        str: Flattened text.
    """
    text = _LINE_BREAKS.sub("\n", xml)
    text = _TABS.sub("\t", text)
    text = _SPACES.sub(" ", text)
    text = _TAGS.sub("", text)
    return html.unescape(text)


class ZipTemplateTextSource:
    """Default text source reading the XML parts of a ZIP-based office document."""

    def detect_type(self, path: Path) -> TemplateType:
        """Validate the template path and return its container type.

        Args:
            path (Path): Template path.

        Raises:
            TemplateParseError: If the file is missing or has an unsupported extension.

        Returns:
            TemplateType: Container type.
        """
        if not str(path) or not Path(path).is_file():
            raise TemplateParseError(code="template_missing", message="Template file not found", path=str(path))
        template_type = detect_template_type(Path(path))
        if template_type is None:
            raise TemplateParseError(
                code="template_invalid",
                message="Unsupported template format, expected .docx or .odt",
                path=str(path),
            )
        return template_type

    def extract_text(self, path: Path) -> str:
        """Return the flattened text of the template's main and auxiliary parts.

        Args:
            path (Path): Template path.

        Raises:
            TemplateParseError: If the container cannot be opened or lacks its main part.

        Returns:
            str: Flattened text stream.
        """
        template_type = self.detect_type(path)
        main_part = _MAIN_PARTS[template_type]
        try:
            with zipfile.ZipFile(path) as archive:
                names = archive.namelist()
                if main_part not in names:
                    raise TemplateParseError(
                        code="template_unreadable",
                        message=f"Template container has no '{main_part}' part",
                        path=str(path),
                    )
                extras = sorted(name for name in names if _EXTRA_PARTS[template_type].match(name))
                chunks = [archive.read(name).decode("utf-8") for name in [main_part, *extras]]
        except (zipfile.BadZipFile, OSError, UnicodeDecodeError) as exc:
            raise TemplateParseError(
                code="template_unreadable",
                message=f"Template container could not be read ({exc.__class__.__name__})",
                path=str(path),
            ) from exc

        logger.debug("Template text extracted", extra={"path": str(path), "parts": 1 + len(extras)})
        return "\n".join(flatten_xml_text(chunk) for chunk in chunks)
