"""
Level CLI tool for the Editor Server.

Runs the Level handlers directly against the configured store and cache,
without the HTTP layer:
- get: Print the merged view of a level
- put: Create or overwrite a level from JSON
- delete: Delete a level (children are kept)
- list: Print the merged listing
- invalidate: Evict a level's cache entries and its descendants'

Usage:
    editor-levels get forest_2
    editor-levels put forest_2 --json '{"parent_key": "forest_1", "name": "Forest 2"}'
    editor-levels put forest_1 --file forest_1.json
    editor-levels delete forest_2
    editor-levels list
    editor-levels invalidate forest_1

Invariants:
    - Output is JSON on stdout; diagnostics go to stderr
    - Exit code is 0 for 2xx responses, 1 otherwise
    - Configuration comes from the same environment variables as the server
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from ..config import ServerConfig
from ..main import EditorServer, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Editor Server level tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    get_parser = subparsers.add_parser("get", help="Print the merged view of a level")
    get_parser.add_argument("level_id")

    put_parser = subparsers.add_parser("put", help="Create or overwrite a level")
    put_parser.add_argument("level_id")
    source = put_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", "-f", help="Path to a JSON level payload")
    source.add_argument("--json", help="Inline JSON level payload")

    delete_parser = subparsers.add_parser("delete", help="Delete a level")
    delete_parser.add_argument("level_id")

    subparsers.add_parser("list", help="Print all merged levels")

    invalidate_parser = subparsers.add_parser(
        "invalidate", help="Evict cached entries for a level and its descendants"
    )
    invalidate_parser.add_argument("level_id")

    return parser


def _load_payload(args: argparse.Namespace) -> Any:
    if args.file:
        with open(args.file) as f:
            return json.load(f)
    return json.loads(args.json)


async def run(args: argparse.Namespace, server: EditorServer) -> int:
    """Execute one command against a started server.

    Returns:
        Process exit code
    """
    levels = server.levels

    if args.command == "get":
        response = await levels.get_level(args.level_id)
    elif args.command == "put":
        try:
            payload = _load_payload(args)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Could not read level payload: {e}", file=sys.stderr)
            return 1
        response = await levels.put_level(args.level_id, payload)
    elif args.command == "delete":
        response = await levels.delete_level(args.level_id)
    elif args.command == "list":
        response = await levels.list_levels()
    elif args.command == "invalidate":
        report = await server.coordinator.invalidate(args.level_id)
        print(
            json.dumps(
                {
                    "level_id": report.root_id,
                    "invalidated": report.invalidated,
                    "complete": report.complete,
                },
                indent=2,
            )
        )
        return 0 if report.complete else 1
    else:
        raise ValueError(f"Unknown command: {args.command}")

    if response.ok:
        print(json.dumps(response.body, indent=2, sort_keys=True))
        return 0

    print(f"[{response.code}] {response.body}", file=sys.stderr)
    return 1


async def _main(args: argparse.Namespace, config: ServerConfig) -> int:
    async with EditorServer(config) as server:
        return await run(args, server)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for the level tool."""
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(config)
    sys.exit(asyncio.run(_main(args, config)))


if __name__ == "__main__":
    main()
