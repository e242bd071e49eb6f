#!/usr/bin/env python3
"""
CLI for watching files from a terminal.

Usage:
    python -m filewatch notes.txt settings.toml
    python -m filewatch --poll --interval 500 /var/log/app.log

Defaults come from FILEWATCH_* environment variables (a .env file in the
working directory is loaded first); command line flags override them.
"""

import argparse
import dataclasses
import logging
import signal
import sys
import time
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .config import WatchOptions
from .manager import WatchManager
from .models import ChangeInfo, EventName


logger = logging.getLogger("filewatch.cli")


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self.should_exit = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.should_exit = True


def build_options(args: argparse.Namespace, base: Optional[WatchOptions] = None) -> WatchOptions:
    """Apply command line overrides on top of the environment defaults."""
    options = base or WatchOptions()
    overrides = {}
    if args.debounce is not None:
        overrides["debounce_ms"] = args.debounce
    if args.interval is not None:
        overrides["interval_ms"] = args.interval
    if args.poll:
        overrides["force_polling"] = True
    if args.no_fallback:
        overrides["fallback"] = False
    return dataclasses.replace(options, **overrides)


def format_change(path: str, info: ChangeInfo) -> str:
    """Render a change event as a single line."""
    if info.deleted:
        return f"deleted   {path}"
    kind = "dir" if info.is_directory else "file"
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(info.mtime))
    return f"changed   {path} ({kind}, {info.size} bytes, mtime {stamp})"


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filewatch",
        description="Watch files and print a line whenever one changes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch two files with native notifications
  python -m filewatch notes.txt settings.toml

  # Poll every half second
  python -m filewatch --poll --interval 500 /var/log/app.log
        """,
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to watch")
    parser.add_argument("--debounce", type=int, default=None, help="Debounce time in ms")
    parser.add_argument("--interval", type=int, default=None, help="Polling interval in ms")
    parser.add_argument("--poll", action="store_true", help="Use polling instead of native events")
    parser.add_argument("--no-fallback", action="store_true", help="Report an error instead of falling back to polling")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    load_dotenv(find_dotenv(usecwd=True))
    try:
        options = build_options(args, WatchOptions.from_env())
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    with WatchManager(options) as watcher:
        watcher.on(EventName.CHANGE, lambda path, info: print(format_change(path, info), flush=True))
        watcher.on(EventName.FALLBACK, lambda count: logger.warning(f"Switched {count} path(s) to polling"))
        watcher.on(EventName.ERROR, lambda err: logger.error(f"Watch error: {err}"))

        for path in args.paths:
            watcher.add(path)

        watched = watcher.list()
        missing = [p for p in args.paths if p not in watched]
        for path in missing:
            logger.warning(f"Not watching {path}")

        if not watched:
            logger.error("Nothing to watch")
            return 1

        logger.info(f"Watching {len(watched)} path(s) in {watcher.mode.value} mode")
        shutdown = GracefulShutdown()
        logger.info("Press Ctrl+C to stop")

        while not shutdown.should_exit:
            time.sleep(0.2)

    logger.info("Watcher stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
