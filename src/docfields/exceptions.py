"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class TemplateParseError(PackageError):
    """Raised when a template file cannot be read or is not a recognized container.

    Marker-level problems never raise this error; the parser drops malformed
    markers and keeps scanning.
    """

    code: str
    message: str
    path: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.path}" if self.path else self.message


@dataclass
class SchemaStoreError(PackageError):
    """Raised when schema loading/saving constraints are violated."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class StoreUnavailableError(PackageError):
    """Raised when the schema persistence medium cannot be reached."""

    operation: str
    classification_id: str
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        base = f"Schema store unavailable during '{self.operation}' for classification '{self.classification_id}'"
        return f"{base}: {self.exc}" if self.exc else base
