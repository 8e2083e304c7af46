"""DocFields package."""

from docfields.exceptions import (
    PackageError,
    SchemaStoreError,
    SettingsError,
    StoreUnavailableError,
    TemplateParseError,
)
from docfields.logging import configure_logging, get_logger
from docfields.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("docfields")

__all__ = [
    "PackageError",
    "SchemaStoreError",
    "Settings",
    "SettingsError",
    "StoreUnavailableError",
    "TemplateParseError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
]
