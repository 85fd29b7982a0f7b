"""Config editor history CLI.

Usage:
    python -m gamecfg list                        # Show all history entries
    python -m gamecfg stats                       # Summary statistics
    python -m gamecfg search intelligence         # Search descriptions/targets/kinds
    python -m gamecfg checkpoints                 # List checkpoints
    python -m gamecfg compact                     # Merge rapid same-target edits
    python -m gamecfg export [PATH]               # Write an export file
    python -m gamecfg import history.json         # Replace history from a file
    python -m gamecfg set-capacity 100            # Resize (evicts oldest)
    python -m gamecfg clear                       # Drop all history
"""

from __future__ import annotations

import argparse
import json
import sys

from gamecfg.core.config import AppConfig
from gamecfg.history.errors import HistoryError
from gamecfg.history.record import ChangeRecord, format_timestamp
from gamecfg.history.session import HistorySession
from gamecfg.utils.logging import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gamecfg",
        description="Inspect and maintain the game config editor's change history",
    )
    parser.add_argument(
        "--config",
        "-c",
        default="config/default.yaml",
        help="Path to configuration YAML file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        default=False,
        help="Validate config against the Pydantic schema before running",
    )
    parser.add_argument("--log-file", default=None, help="Path to log file")
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=False,
        help="Output logs as JSON instead of human-readable",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List history entries")
    sub.add_parser("stats", help="Show history statistics")
    search = sub.add_parser("search", help="Search history entries")
    search.add_argument("query")
    sub.add_parser("checkpoints", help="List checkpoints")
    sub.add_parser("compact", help="Merge rapid edits to the same target")
    sub.add_parser("clear", help="Delete all history entries")
    export = sub.add_parser("export", help="Export history to a JSON file")
    export.add_argument("path", nargs="?", default=None)
    imp = sub.add_parser("import", help="Import history from an export file")
    imp.add_argument("path")
    cap = sub.add_parser("set-capacity", help="Change the maximum entry count")
    cap.add_argument("capacity", type=int)
    return parser


def _entry_line(index: int, record: ChangeRecord, cursor: int) -> str:
    marker = ">" if index == cursor else " "
    return (
        f"{marker} {index:4d}  {format_timestamp(record.timestamp)}  "
        f"{record.kind.value:<10} {record.target:<40} {record.description}"
    )


def run(args: argparse.Namespace, session: HistorySession) -> int:
    log = session.log

    if args.command == "list":
        for i, record in enumerate(log.entries):
            print(_entry_line(i, record, log.cursor))
    elif args.command == "stats":
        print(json.dumps(session.get_status(), indent=2))
    elif args.command == "search":
        for hit in session.query.search(args.query):
            print(_entry_line(hit.index, hit.record, log.cursor))
    elif args.command == "checkpoints":
        for cp in session.checkpoints.get_checkpoints():
            print(f"{cp.index:4d}  {cp.checkpoint_id}  {cp.description}")
    elif args.command == "compact":
        removed = session.compact()
        print(f"Removed {removed} entries ({len(log)} remaining)")
    elif args.command == "clear":
        log.clear()
        print("History cleared")
    elif args.command == "export":
        path = session.export(args.path)
        print(f"Exported {len(log)} entries to {path}")
    elif args.command == "import":
        try:
            count = log.import_from_file(args.path)
        except HistoryError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Imported {count} entries")
    elif args.command == "set-capacity":
        log.set_capacity(args.capacity)
        print(f"Capacity set to {log.capacity} ({len(log)} entries)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    config = AppConfig(args.config)
    try:
        cfg = config.load(validate=args.validate_config)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: Config validation failed:\n{e}", file=sys.stderr)
        return 1

    system = cfg.gamecfg.get("system", {})
    setup_logging(
        args.log_level or system.get("log_level", "INFO"),
        log_file=args.log_file or system.get("log_file", None),
        log_json=args.log_json or system.get("log_json", False),
    )

    session = HistorySession.from_config(cfg)
    session.start()
    try:
        return run(args, session)
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
