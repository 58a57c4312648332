"""Command-line entry point for the file watcher."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .channel import WatchSetupError
from .config import ConfigError, WatchOptions, load_config, merge_cli
from .monitor import watch
from .paths import PathJoinError

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_SETUP_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metis",
        description="Run a command whenever a watched file is modified",
    )
    parser.add_argument(
        "-c",
        "--command",
        help="Command to run on change; every {} is replaced with the changed path",
    )
    parser.add_argument("paths", nargs="*", metavar="PATH", help="Files or directories to watch")
    parser.add_argument(
        "--config",
        help="Optional YAML configuration file; command-line values take precedence",
    )
    parser.add_argument(
        "--poll-timeout",
        type=int,
        help="Milliseconds to wait for events before re-checking for shutdown",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        options = load_config(Path(args.config)) if args.config else WatchOptions()
        options = merge_cli(
            options,
            command=args.command,
            paths=args.paths,
            poll_timeout_ms=args.poll_timeout,
        )
    except ConfigError as exc:
        logging.error("%s", exc)
        return EXIT_SETUP_ERROR

    try:
        outcome = watch(options)
    except (WatchSetupError, PathJoinError) as exc:
        logging.error("%s", exc)
        return EXIT_SETUP_ERROR

    return EXIT_RUNTIME_ERROR if outcome.failed else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
