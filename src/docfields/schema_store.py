"""Schema persistence keyed by classification id."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docfields import logger
from docfields.exceptions import SchemaStoreError, StoreUnavailableError
from docfields.typing.models import CURRENT_SCHEMA_VERSION, Schema, SchemaSummary

if TYPE_CHECKING:
    from collections.abc import Callable

    from docfields.settings import Settings
    from docfields.typing.protocol import SchemaBackend

T = TypeVar("T")

_SCHEMA_FILE_VERSION = 2
SCHEMA_KEY = "schema_v2"
LEGACY_MIRROR_KEYS = ("schema", "schema_legacy")

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_component(classification_id: str) -> str:
    """Map a classification id to a single path component.

    Args:
        classification_id (str): Classification id.

    Raises:
        SchemaStoreError: If nothing usable remains after sanitization.

    Returns:
        str: Directory name.
    """
    safe = _UNSAFE_ID_CHARS.sub("-", str(classification_id)).strip("-.")
    if not safe:
        raise SchemaStoreError(message=f"Invalid classification id: {classification_id!r}")
    return safe


class FilesystemSchemaBackend(BaseModel):
    """JSON files under ``<root>/<classification id>/<key>.json``."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    root: Path = Field(description="Store directory root.")

    def model_post_init(self, __context: object, /) -> None:
        """Ensure the store directory exists after model initialization.

        Args:
            __context (object): Pydantic model context.
        """
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, classification_id: str, key: str) -> Path:
        return self.root / _safe_component(classification_id) / f"{key}.json"

    def read(self, classification_id: str, key: str) -> str | None:
        path = self.path_for(classification_id, key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, classification_id: str, key: str, payload: str) -> None:
        path = self.path_for(classification_id, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")

    def remove(self, classification_id: str, key: str) -> None:
        path = self.path_for(classification_id, key)
        path.unlink(missing_ok=True)
        if path.parent.is_dir() and not any(path.parent.iterdir()):
            path.parent.rmdir()


class MemorySchemaBackend:
    """In-process backend, mostly for tests and previews."""

    def __init__(self) -> None:
        self.payloads: dict[tuple[str, str], str] = {}

    def read(self, classification_id: str, key: str) -> str | None:
        return self.payloads.get((str(classification_id), key))

    def write(self, classification_id: str, key: str, payload: str) -> None:
        self.payloads[(str(classification_id), key)] = payload

    def remove(self, classification_id: str, key: str) -> None:
        self.payloads.pop((str(classification_id), key), None)


class SchemaStore:
    """Versioned schema store on top of a `SchemaBackend`.

    The store owns the payload shape and versioning contract only. It takes no
    lock: two concurrent saves for the same classification id are resolved by
    whichever write reaches the backend last.
    """

    def __init__(self, backend: SchemaBackend) -> None:
        self.backend = backend

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SchemaStore:
        """Build a filesystem-backed store from settings.

        Args:
            settings (Settings | None): Runtime settings, loaded when omitted.

        Returns:
            SchemaStore: Store rooted at `schema_store_dir`.
        """
        if settings is None:
            from docfields.settings import get_settings  # noqa: PLC0415

            settings = get_settings()
        return cls(FilesystemSchemaBackend(root=Path(settings.schema_store_dir)))

    def save(self, classification_id: str, schema: Schema) -> None:
        """Persist a schema, replacing the stored one wholesale.

        Args:
            classification_id (str): Owning classification.
            schema (Schema): Schema to store.

        Raises:
            SchemaStoreError: If the schema version is lower than the stored one.
            StoreUnavailableError: If the backend cannot be reached.
        """
        stored_version = self._stored_version(classification_id)
        if stored_version is not None and schema.version < stored_version:
            raise SchemaStoreError(
                message=(
                    f"Refusing to replace schema version {stored_version} with version {schema.version} "
                    f"for classification '{classification_id}'"
                ),
            )

        envelope = {
            "schema_file_version": _SCHEMA_FILE_VERSION,
            "schema": schema.model_dump(mode="json"),
        }
        payload = json.dumps(envelope, indent=2, sort_keys=True)
        self._call("save", classification_id, self.backend.write, SCHEMA_KEY, payload)
        logger.info(
            "Schema stored",
            extra={
                "classification_id": str(classification_id),
                "fields": len(schema.fields),
                "repeaters": len(schema.repeaters),
            },
        )

    def get(self, classification_id: str) -> Schema | None:
        """Load the stored schema.

        Args:
            classification_id (str): Owning classification.

        Raises:
            SchemaStoreError: If the stored payload is not a valid schema.
            StoreUnavailableError: If the backend cannot be reached.

        Returns:
            Schema | None: Stored schema, or None when nothing is stored.
        """
        raw = self._call("get", classification_id, self.backend.read, SCHEMA_KEY)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SchemaStoreError(message=f"Stored schema is not valid JSON: {exc}") from exc

        migrated = _migrate_schema_payload(payload)
        try:
            return Schema.model_validate(migrated)
        except ValidationError as exc:
            raise SchemaStoreError(message=f"Stored schema is invalid: {exc}") from exc

    def delete(self, classification_id: str) -> None:
        """Remove the stored schema and its legacy mirrors.

        Args:
            classification_id (str): Owning classification.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        for key in (SCHEMA_KEY, *LEGACY_MIRROR_KEYS):
            self._call("delete", classification_id, self.backend.remove, key)
        logger.info("Schema cleared", extra={"classification_id": str(classification_id)})

    @staticmethod
    def summarize(schema: Schema | None) -> SchemaSummary:
        """Summarize a schema without re-parsing anything.

        Args:
            schema (Schema | None): Schema, or None for an absent one.

        Returns:
            SchemaSummary: Top-level field count and repeater slugs.
        """
        if schema is None:
            return SchemaSummary()
        return SchemaSummary(
            field_count=len(schema.fields),
            repeater_names=[item.slug for item in schema.repeaters],
        )

    def _stored_version(self, classification_id: str) -> int | None:
        raw = self._call("save", classification_id, self.backend.read, SCHEMA_KEY)
        if raw is None:
            return None
        try:
            migrated = _migrate_schema_payload(json.loads(raw))
        except (json.JSONDecodeError, SchemaStoreError):
            logger.warning(
                "Unreadable stored schema will be overwritten",
                extra={"classification_id": classification_id},
            )
            return None
        version = migrated.get("version")
        return version if isinstance(version, int) else None

    @staticmethod
    def _call(operation: str, classification_id: str, method: Callable[..., T], *args: str) -> T:
        try:
            return method(classification_id, *args)
        except OSError as exc:
            logger.exception(
                "Schema store unavailable",
                extra={"operation": operation, "classification_id": str(classification_id)},
            )
            raise StoreUnavailableError(
                operation=operation,
                classification_id=str(classification_id),
                exc=exc,
            ) from exc


def _migrate_schema_payload(payload: object) -> dict[str, object]:
    """Migrate a stored payload to the current schema model format.

    Args:
        payload (object): Raw JSON payload, enveloped or bare.

    Raises:
        SchemaStoreError: If the payload is not a JSON object or its version is unsupported.

    Returns:
        dict[str, object]: Migrated schema object payload.
    """
    if not isinstance(payload, dict):
        raise SchemaStoreError(message="Schema payload must be a JSON object")

    payload_obj = cast("dict[str, object]", payload)
    schema_object = payload_obj
    embedded_schema = payload_obj.get("schema")
    if isinstance(embedded_schema, dict):
        schema_object = cast("dict[str, object]", embedded_schema)

    migrated = dict(schema_object)
    if "version" not in migrated:
        migrated["version"] = 1
    version = migrated["version"]
    if not isinstance(version, int) or version > CURRENT_SCHEMA_VERSION:
        raise SchemaStoreError(message=f"Unsupported schema version: {version!r}")
    migrated.setdefault("fields", [])
    migrated.setdefault("repeaters", [])
    return migrated
