"""
Command line entry point.

    walker run --site hellowork --url <list page> [--max 50] [--source annonce]
    walker table --url <report page> [--out rows.tsv]
    walker control pause|stop
    walker status
    walker clear
"""

import argparse
import asyncio
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from src.core.config import get_config
from src.core.logging import get_logger, init_walker_logging
from src.sites.profiles import SITE_PROFILES, get_profile
from src.traversal.control import ControlSignalChannel
from src.traversal.state import SourceTag
from src.traversal.store import FileTraversalStore

logger = get_logger(__name__)

_CONTROL_ACTIONS = {"pause": "pause_or_resume", "resume": "pause_or_resume", "stop": "stop"}


def non_negative_int(value: str) -> int:
    """argparse type for counts that may be zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="walker", description="Resumable candidate list traversal for recruiter sites.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ap.add_argument("--env", type=Path, default=None, help="Path to the .env file (default: configs/.env)")
    sub = ap.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Harvest a list page and visit every item")
    run.add_argument("--site", choices=sorted(SITE_PROFILES), default=None, help="Site profile (default: WALKER_SITE)")
    run.add_argument("--url", required=True, help="List page URL")
    run.add_argument("--max", type=non_negative_int, default=None, help="Maximum items (default: the site's default)")
    run.add_argument("--source", choices=[t.value for t in SourceTag], default=None,
                     help="Campaign classification (default: DEFAULT_SOURCE_TAG)")
    run.add_argument("--store", choices=["file", "session"], default="file",
                     help="Where the traversal state lives (default: file)")
    run.add_argument("--resume", action="store_true", help="Continue an interrupted traversal from the state file")
    run.add_argument("--headless", action="store_true", default=None, help="Run headless (overrides WALKER_HEADLESS)")

    table = sub.add_parser("table", help="Harvest an incrementally rendered report table")
    table.add_argument("--url", required=True, help="Report page URL")
    table.add_argument("--out", type=Path, default=None, help="Output file (default: OUTPUT_DIR/table_<ts>.tsv)")
    table.add_argument("--tbody", default="table tbody", help="Selector of the table body to observe")
    table.add_argument("--total", default=".resultats.bold", help="Selector of the element showing the row total")
    table.add_argument("--headless", action="store_true", default=None)

    control = sub.add_parser("control", help="Pause/resume or stop the running traversal")
    control.add_argument("action", choices=sorted(_CONTROL_ACTIONS))
    control.add_argument("--state-file", type=Path, default=None)

    status = sub.add_parser("status", help="Show the stored traversal state")
    status.add_argument("--state-file", type=Path, default=None)

    clear = sub.add_parser("clear", help="Delete the stored traversal state")
    clear.add_argument("--state-file", type=Path, default=None)

    return ap


def _store(args, config) -> FileTraversalStore:
    return FileTraversalStore(args.state_file or config.state_file, site=config.site)


async def _control(args, config) -> int:
    channel = ControlSignalChannel(_store(args, config))
    state = await getattr(channel, _CONTROL_ACTIONS[args.action])()
    if state is None:
        print("No traversal in progress.")
        return 1
    print(state.summary())
    return 0


async def _status(args, config) -> int:
    state = await _store(args, config).load()
    print(state.summary() if state else "No traversal state.")
    return 0


async def _clear(args, config) -> int:
    await _store(args, config).clear()
    print("Traversal state cleared.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config(args.env)
    init_walker_logging(verbose=args.verbose or config.log_level.upper() == "DEBUG", log_dir=config.log_dir)

    try:
        config.validate()
    except ValueError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "run":
            from src.runner import run_traversal

            profile = get_profile(args.site or config.site)
            source = SourceTag(args.source or config.default_source_tag)
            return asyncio.run(run_traversal(
                config, profile, args.url, args.max, source,
                store_kind=args.store, resume=args.resume, headless=args.headless,
            ))
        if args.command == "table":
            from src.runner import run_table

            return asyncio.run(run_table(config, args.url, args.out, tbody_selector=args.tbody,
                                         total_selector=args.total, headless=args.headless))
        if args.command == "control":
            return asyncio.run(_control(args, config))
        if args.command == "status":
            return asyncio.run(_status(args, config))
        if args.command == "clear":
            return asyncio.run(_clear(args, config))
    except KeyboardInterrupt:
        print("\n[abort] KeyboardInterrupt – stopping.")
        return 1
    except Exception as e:
        print(f"[fatal] uncaught error: {e}")
        traceback.print_exc()
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
