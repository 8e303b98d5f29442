"""Entry point for the family steward bridge."""

import argparse
import json
import logging
import sys

import anyio

from family_steward import environment
from family_steward.bridge import AnalysisBridge
from family_steward.dispatcher import Dispatcher
from family_steward.executor import LocalExecutor
from family_steward.exporter import export_family_data
from family_steward.logging import configure_logging
from family_steward.server import serve_stdio
from family_steward.store import SnapshotStore
from family_steward.tools import ToolContext

log = logging.getLogger(__name__)


def build_context() -> ToolContext:
    store = SnapshotStore(environment.DATA_DIR)
    bridge = AnalysisBridge(
        store,
        LocalExecutor(),
        program_dir=environment.ANALYZER_DIR,
        timeout=environment.ANALYSIS_TIMEOUT,
    )
    return ToolContext(store=store, bridge=bridge)


async def main() -> None:  # pragma: no cover
    await serve_stdio(Dispatcher(build_context()))


def export_command(source: str) -> int:
    """Sanitize a snapshot document from a file (or ``-`` for stdin)."""
    if source == "-":
        snapshot = json.load(sys.stdin)
    else:
        with open(source, encoding="utf-8") as f:
            snapshot = json.load(f)
    path = export_family_data(snapshot, build_context().store)
    print(path)
    return 0


def analyze_command() -> int:
    result = anyio.run(build_context().bridge.run)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


def results_command() -> int:
    result = build_context().bridge.read_results()
    if result is None:
        print("No analysis results.", file=sys.stderr)
        return 1
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cleanup_command() -> int:
    build_context().bridge.cleanup()
    return 0


def run() -> None:
    parser = argparse.ArgumentParser(
        description="Family steward bridge (serves stdio when run without a command)"
    )
    subparsers = parser.add_subparsers(dest="command")

    export_parser = subparsers.add_parser(
        "export", help="Sanitize a family snapshot into the input file"
    )
    export_parser.add_argument(
        "source", nargs="?", default="-", help="Snapshot JSON file (default: stdin)"
    )
    subparsers.add_parser("analyze", help="Run the external drift analysis once")
    subparsers.add_parser("results", help="Show the last analysis result")
    subparsers.add_parser("cleanup", help="Delete the input and output files")

    args = parser.parse_args()
    configure_logging()

    if args.command == "export":
        sys.exit(export_command(args.source))
    elif args.command == "analyze":
        sys.exit(analyze_command())
    elif args.command == "results":
        sys.exit(results_command())
    elif args.command == "cleanup":
        sys.exit(cleanup_command())
    else:
        anyio.run(main)


if __name__ == "__main__":
    run()
