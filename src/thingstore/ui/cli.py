# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any, cast

from dotenv import load_dotenv

from thingstore.adapters.codec import dumps_thing
from thingstore.app import (
    build_store,
    export_collection,
    import_records,
    link_things,
    resolve_type,
    show_thing,
    unlink_things,
)
from thingstore.config import (
    ConfigurationError,
    StorageBackend,
    configure_logging,
    get_storage_config,
)
from thingstore.domain.merge import TypeMismatchPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from thingstore.domain.ports.persistence import EntityStore

log = logging.getLogger(__name__)

# Commands that touch a store; ``resolve`` only needs the registry.
_STORE_COMMANDS = frozenset({"import", "show", "link", "unlink", "export"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve, merge and store things")
    parser.add_argument(
        "--backend",
        type=str,
        choices=[backend.value for backend in StorageBackend],
        help="Storage backend (defaults to THINGSTORE_BACKEND or 'file')",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Ingest NDJSON record files")
    importer.add_argument("files", nargs="+", type=Path, help="NDJSON files to ingest")
    importer.add_argument(
        "--policy",
        type=str,
        choices=[policy.value for policy in TypeMismatchPolicy],
        default=TypeMismatchPolicy.MERGE.value,
        help="How to handle records whose type differs from the stored one",
    )

    show = subparsers.add_parser("show", help="Print a stored thing as JSON")
    show.add_argument("id", type=str, help="Canonical id, e.g. person:ada")

    resolve = subparsers.add_parser("resolve", help="Print the tag and collection of a type")
    resolve.add_argument("type", type=str, help="Type name or tag")

    link = subparsers.add_parser("link", help="Create or replace an edge")
    link.add_argument("source", type=str)
    link.add_argument("relation", type=str)
    link.add_argument("target", type=str)
    link.add_argument(
        "--attributes",
        type=str,
        help="JSON object stored on the edge",
    )

    unlink = subparsers.add_parser("unlink", help="Remove edges between two things")
    unlink.add_argument("source", type=str)
    unlink.add_argument("target", type=str)
    unlink.add_argument(
        "--relation",
        type=str,
        help="Only remove this relation (defaults to every edge between the pair)",
    )

    export = subparsers.add_parser("export", help="Export a collection as NDJSON")
    export.add_argument("collection", type=str)
    export.add_argument("output", type=Path)

    return parser.parse_args(list(argv))


def _parse_attributes(value: str | None) -> dict[str, Any] | None:
    if value is None:
        return None
    try:
        loaded = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for --attributes: {value}") from exc
    if not isinstance(loaded, dict):
        raise ValueError("--attributes must be a JSON object")
    return cast("dict[str, Any]", loaded)


def _run(args: argparse.Namespace, store: EntityStore | None) -> None:
    if args.command == "import":
        summary = import_records(
            args.files,
            store=store,
            policy=TypeMismatchPolicy(args.policy),
        )
        for outcome in summary.outcomes:
            if not outcome.ok:
                log.warning("Skipped record: %s", outcome.error)
    elif args.command == "show":
        thing = show_thing(args.id, store=store)
        if thing is None:
            raise LookupError(f"No thing stored under {args.id}")
        print(dumps_thing(thing), end="")
    elif args.command == "resolve":
        resolved = resolve_type(args.type)
        print(f"{resolved.name}\t{resolved.tag}\t{resolved.collection}")
    elif args.command == "link":
        edge = link_things(
            args.source,
            args.relation,
            args.target,
            attributes=args.attributes,
            store=store,
        )
        print(edge.key)
    elif args.command == "unlink":
        print(unlink_things(args.source, args.target, relation=args.relation, store=store))
    elif args.command == "export":
        count = export_collection(args.collection, args.output, store=store)
        log.info("Wrote %s things to %s", count, args.output)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "link":
            parsed_args.attributes = _parse_attributes(parsed_args.attributes)
        storage = get_storage_config(backend=parsed_args.backend)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        store = build_store(storage) if parsed_args.command in _STORE_COMMANDS else None
        _run(parsed_args, store)
    except Exception:
        log.exception("Command %s failed", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
