"""Collaborator interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from docfields.typing.enums import TemplateType


class TemplateTextSource(Protocol):
    """Source of the flattened text stream of a template container."""

    def detect_type(self, path: Path) -> TemplateType:
        """Detect the container type of a template.

        Args:
            path: Template path.

        Returns:
            TemplateType: Detected container type.
        """

    def extract_text(self, path: Path) -> str:
        """Return the template text with marker brackets intact.

        Args:
            path: Template path.

        Returns:
            str: Flattened text stream.
        """


class SchemaBackend(Protocol):
    """Key/value medium holding schema payloads per classification."""

    def read(self, classification_id: str, key: str) -> str | None:
        """Read a stored payload.

        Args:
            classification_id: Owning classification.
            key: Payload key.

        Returns:
            str | None: Raw payload, or None when absent.
        """

    def write(self, classification_id: str, key: str, payload: str) -> None:
        """Store a payload, replacing any previous one.

        Args:
            classification_id: Owning classification.
            key: Payload key.
            payload: Raw payload.
        """

    def remove(self, classification_id: str, key: str) -> None:
        """Remove a payload; absent keys are ignored.

        Args:
            classification_id: Owning classification.
            key: Payload key.
        """
