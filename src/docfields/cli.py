"""CLI entry point for DocFields."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from docfields import __version__, logger
from docfields.content.codec import decode_array_items, decode_content
from docfields.content.merge import rebuild_content
from docfields.exceptions import PackageError
from docfields.logging import configure_logging
from docfields.schema.converter import legacy_payload
from docfields.schema_store import SchemaStore
from docfields.settings import Settings, get_settings
from docfields.templates import preview_template, reparse_template
from docfields.typing.enums import LegacyType


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="docfields")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--store-dir", type=Path, default=None, dest="store_dir")

    subparsers = parser.add_subparsers(dest="command")

    parse_parser = subparsers.add_parser("parse", help="Parse a template and print its schema")
    parse_parser.add_argument("template", type=Path)
    parse_parser.add_argument("--template-id", default="", dest="template_id")
    parse_parser.add_argument("--legacy", action="store_true")

    reparse_parser = subparsers.add_parser("reparse", help="Parse a template and store its schema")
    reparse_parser.add_argument("classification_id")
    reparse_parser.add_argument("template", type=Path)
    reparse_parser.add_argument("--template-id", default="", dest="template_id")
    reparse_parser.add_argument("--clear-on-failure", action="store_true", dest="clear_on_failure")

    show_parser = subparsers.add_parser("show", help="Print a stored schema")
    show_parser.add_argument("classification_id")
    show_parser.add_argument("--legacy", action="store_true")

    summary_parser = subparsers.add_parser("summary", help="Print a stored schema digest")
    summary_parser.add_argument("classification_id")

    delete_parser = subparsers.add_parser("delete", help="Remove a stored schema")
    delete_parser.add_argument("classification_id")

    decode_parser = subparsers.add_parser("decode", help="Decode a structured content blob")
    decode_parser.add_argument("blob_file", type=Path)

    rebuild_parser = subparsers.add_parser("rebuild", help="Rebuild a content blob from submitted values")
    rebuild_parser.add_argument("classification_id")
    rebuild_parser.add_argument("values_file", type=Path)
    rebuild_parser.add_argument("--previous", type=Path, default=None, dest="previous_file")

    return parser


def _emit(payload: object) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


def _store(args: argparse.Namespace, settings: Settings) -> SchemaStore:
    if args.store_dir is not None:
        settings = settings.model_copy(update={"schema_store_dir": str(args.store_dir)})
    return SchemaStore.from_settings(settings)


def _decoded_payload(blob: str, settings: Settings) -> dict[str, object]:
    payload: dict[str, object] = {}
    for slug, item in decode_content(blob).items():
        entry: dict[str, object] = item.model_dump(mode="json")
        if item.type == LegacyType.ARRAY:
            entry["items"] = decode_array_items(item.value, settings.array_max_items)
        payload[slug] = entry
    return payload


def _run(args: argparse.Namespace, settings: Settings) -> int:
    """Dispatch one sub-command.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Returns:
        int: Exit code.
    """
    if args.command == "parse":
        schema = preview_template(args.template, template_id=args.template_id)
        _emit(legacy_payload(schema) if args.legacy else schema.model_dump(mode="json"))
        return 0

    if args.command == "decode":
        _emit(_decoded_payload(args.blob_file.read_text(encoding="utf-8"), settings))
        return 0

    store = _store(args, settings)
    if args.command == "reparse":
        outcome = reparse_template(
            store,
            args.classification_id,
            args.template,
            template_id=args.template_id,
            clear_on_failure=args.clear_on_failure,
        )
        _emit(outcome.model_dump(mode="json", exclude={"parsed"}))
        return 0 if outcome.success else 1

    if args.command == "delete":
        store.delete(args.classification_id)
        return 0

    schema = store.get(args.classification_id)
    if args.command == "summary":
        _emit(store.summarize(schema).model_dump(mode="json"))
    elif args.command == "show":
        if schema is None:
            _emit(None)
        else:
            _emit(legacy_payload(schema) if args.legacy else schema.model_dump(mode="json"))
    else:
        values = json.loads(args.values_file.read_text(encoding="utf-8"))
        if not isinstance(values, dict):
            logger.error("Submitted values must be a JSON object", extra={"path": str(args.values_file)})
            return 1
        previous = args.previous_file.read_text(encoding="utf-8") if args.previous_file else ""
        rebuild = rebuild_content(schema, values, previous, max_items=settings.array_max_items)
        _emit(rebuild.model_dump(mode="json"))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments, defaulting to `sys.argv`.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return _run(args, settings)
    except PackageError:
        logger.exception("Command failed", extra={"command": args.command})
        return 1
    except (OSError, json.JSONDecodeError):
        logger.exception("Could not read input file", extra={"command": args.command})
        return 1
    except KeyboardInterrupt:
        logger.info("Command aborted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
