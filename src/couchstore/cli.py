"""CLI entry point for couchstore."""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from pathlib import Path
from typing import Any

from couchstore.backends.base import DatabaseFactory
from couchstore.backends.couchdb import CouchServer
from couchstore.config.settings import Settings
from couchstore.exceptions import ConfigurationError, StoreError
from couchstore.store.adapter import DocumentStoreAdapter


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.url:
        settings.couch.url = args.url.rstrip("/")
    if args.log_level:
        settings.observability.log_level = args.log_level

    from couchstore.observability.logging import setup_logging

    setup_logging(settings.observability)

    try:
        output = asyncio.run(run(args, settings))
    except (StoreError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))


async def run(args: argparse.Namespace, settings: Settings, factory: DatabaseFactory | None = None) -> Any:
    """Execute one CLI command and return its JSON-serializable output."""
    factory = factory or CouchServer.from_settings(settings.couch)
    try:
        adapter = DocumentStoreAdapter.from_settings(settings, factory=factory)
        adapter.bind_target(args.database)
        if getattr(args, "view", None):
            adapter.bind_view_query({"view": args.view})
        if getattr(args, "id_property", None):
            adapter.id_property = args.id_property
        database = adapter.database
        if database is None:
            raise ConfigurationError("No database given on the command line or in settings")

        if args.command == "info":
            return await database.info()

        if args.command == "get":
            return await adapter.get(args.id)

        if args.command == "load":
            records = _read_records(Path(args.file))
            results = await adapter.set_data(records)
            return [r.model_dump(exclude_none=True) for r in results]

        query: dict[str, Any] = {}
        for field, value in args.where:
            query[field] = _parse_json_value(value)
        for field, pattern in args.match:
            query[field] = re.compile(pattern)

        options: dict[str, Any] = {"sort": args.sort, "start": args.start, "count": args.count}
        overrides = None
        if args.view_option:
            overrides = {"options": {name: _parse_json_value(value) for name, value in args.view_option}}

        results = await adapter.query(query, options, overrides)
        return {"total": results.total, "records": list(results)}
    finally:
        await factory.close()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="couchstore",
        description="couchstore — query CouchDB-style document databases",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help="CouchDB server URL (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"couchstore {_get_version()}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    info = commands.add_parser("info", help="Show database metadata")
    info.add_argument("database")

    get = commands.add_parser("get", help="Fetch one document by id")
    get.add_argument("database")
    get.add_argument("id")

    load = commands.add_parser("load", help="Bulk insert documents from a JSON file")
    load.add_argument("database")
    load.add_argument("file", help="JSON array of documents, or an object with a 'docs' array")

    query = commands.add_parser("query", help="Query documents")
    query.add_argument("database")
    query.add_argument(
        "--where",
        type=_assignment,
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Require FIELD to equal VALUE (parsed as JSON when possible)",
    )
    query.add_argument(
        "--match",
        type=_assignment,
        action="append",
        default=[],
        metavar="FIELD=REGEX",
        help="Require FIELD to match REGEX",
    )
    query.add_argument("--view", type=str, default=None, help="View to query, e.g. 'design/view'")
    query.add_argument(
        "--view-option",
        type=_assignment,
        action="append",
        default=[],
        metavar="NAME=JSON",
        help="View query option, e.g. key='\"x\"' or limit=10",
    )
    query.add_argument(
        "--sort",
        action="append",
        default=[],
        metavar="FIELD",
        help="Sort on FIELD; prefix with '-' for descending",
    )
    query.add_argument("--start", type=int, default=0, help="Index of the first match to return")
    query.add_argument("--count", type=int, default=None, help="Maximum number of matches to return")
    query.add_argument("--id-property", type=str, default=None, help="Record identity field")

    return parser


def _assignment(text: str) -> tuple[str, str]:
    """Parse ``NAME=VALUE`` command-line arguments."""
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{text}'")
    return name, value


def _parse_json_value(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def _read_records(path: Path) -> list[dict[str, Any]]:
    """Read documents from a JSON array, or an object with a ``docs`` array."""
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    if isinstance(data, dict):
        data = data.get("docs", [])
    if not isinstance(data, list) or not all(isinstance(doc, dict) for doc in data):
        raise ValueError(f"Expected a list of documents in {path}")
    return data


def _get_version() -> str:
    """Get the package version."""
    try:
        from couchstore import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
