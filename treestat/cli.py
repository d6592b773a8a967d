"""Command line entry point for printing a sorted tree size report."""
from __future__ import annotations

import argparse
import locale
import logging
import signal
import sys
from typing import Optional

from .common.filesystem import CancellationToken, TreeWalkError, WalkCancelledError
from .config import (
    LOG_LEVELS,
    SUPPORTED_DOT_FILTERS,
    SUPPORTED_MODES,
    TreeStatConfig,
    load_config,
    override,
)
from .logging_utils import setup_logging
from .report.runner import ReportRunner

EXIT_OK = 0
EXIT_WALK_FAILED = 1
EXIT_BAD_CONFIG = 2
EXIT_CANCELLED = 130


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="treestat",
        description="Walk a directory tree and print every entry with its size, sorted",
    )
    parser.add_argument("root", help="Directory to walk")
    parser.add_argument("--config", default=None, help="Path to YAML configuration")
    parser.add_argument("--mode", choices=sorted(SUPPORTED_MODES), default=None)
    parser.add_argument("--max-depth", type=int, default=None, help="Deepest level to descend into")
    parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        default=None,
        help="Descend into symbolic links to directories",
    )
    parser.add_argument(
        "--dot-filter",
        choices=sorted(SUPPORTED_DOT_FILTERS),
        default=None,
        help="'suffix' also skips every name ending in '.'",
    )
    parser.add_argument(
        "--stat-directory-size",
        action="store_true",
        default=None,
        help="Report the on-disk size of directories instead of 0",
    )
    parser.add_argument(
        "--thousands-separator",
        default=None,
        help="Digit group separator for the byte total (default: from locale)",
    )
    parser.add_argument("--locale", default=None, help="LC_NUMERIC locale for the byte total")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: WARNING; INFO adds the walk summary)",
    )
    parser.add_argument("--log-file", default=None)
    parser.add_argument(
        "--show-errors",
        action="store_true",
        help="List entries that were skipped during the walk on stderr",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> TreeStatConfig:
    config = load_config(args.config)
    return override(
        config,
        walk={
            "mode": args.mode,
            "max_depth": args.max_depth,
            "follow_symlinks": args.follow_symlinks,
            "dot_filter": args.dot_filter,
            "stat_directory_size": args.stat_directory_size,
        },
        report={"thousands_separator": args.thousands_separator, "locale": args.locale},
        logging={"level": args.log_level, "file": args.log_file},
    )


def apply_locale(name: Optional[str], logger: logging.Logger) -> None:
    """Switch LC_NUMERIC to *name*, or to the environment's locale when unset."""

    if name is not None:
        locale.setlocale(locale.LC_NUMERIC, name)
        return
    try:
        locale.setlocale(locale.LC_NUMERIC, "")
    except locale.Error as exc:
        logger.warning("falling back to the C locale: %s", exc)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"treestat: invalid configuration: {exc}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    logger = setup_logging(
        "treestat",
        level=config.logging.level,
        log_file=config.logging.file,
    )
    try:
        apply_locale(config.report.locale, logger)
    except locale.Error as exc:
        print(f"treestat: unsupported locale {config.report.locale!r}: {exc}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    token = CancellationToken()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        result = ReportRunner(config, cancel_token=token).report(args.root)
    except WalkCancelledError:
        print("treestat: cancelled", file=sys.stderr)
        return EXIT_CANCELLED
    except TreeWalkError as exc:
        print(f"treestat: {exc}", file=sys.stderr)
        return EXIT_WALK_FAILED
    finally:
        signal.signal(signal.SIGINT, previous)

    if args.show_errors:
        for error in result.errors:
            print(f"skipped {error}", file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
