#!/usr/bin/env python3
"""
CLI for following files matched by glob patterns.

Usage:
    python -m src.cli "/var/log/nginx/*.log" "/var/log/apache2/*.access.log"
    python -m src.cli --poll-interval 250ms --scan-interval 5s "/var/log/**/*.log"
"""

import argparse
import logging
import signal
import sys
import time
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from src.tailer import (
    BackendInitError,
    ConfigError,
    NoPatternsError,
    TailerConfig,
    TailerProcess,
    parse_duration,
)


logger = logging.getLogger("cli")


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self.should_exit = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.should_exit = True


def duration_arg(value: str) -> int:
    """argparse type converting a duration string to milliseconds."""
    try:
        return parse_duration(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))


def setup_logging(verbose: bool = False) -> None:
    """Send diagnostics to stderr, keeping stdout for file content."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="globtail",
        description="Follow files matched by glob patterns, like tail -F",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Durations accept 250ms, 5s, 1m, 1h30m or a number of seconds.
Defaults can also be set with GLOBTAIL_POLL_INTERVAL, GLOBTAIL_SCAN_INTERVAL
and GLOBTAIL_QUIET_INTERVAL (a .env file is loaded if present).

Examples:
  # Follow every nginx log
  python -m src.cli "/var/log/nginx/*.log"

  # Recursive pattern, faster polling
  python -m src.cli --poll-interval 250ms --scan-interval 5s "/var/log/**/*.log"
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--poll-interval",
        type=duration_arg,
        default=None,
        help="Interval to poll files for new content (default: 500ms)",
    )
    parser.add_argument(
        "--scan-interval",
        type=duration_arg,
        default=None,
        help="Interval to scan for new files matching the patterns (default: 3s)",
    )
    parser.add_argument(
        "--quiet-interval",
        "--disp-interval",
        dest="quiet_interval",
        type=duration_arg,
        default=None,
        help="Silence before logging that no files changed, 0 to disable (default: 1m)",
    )
    parser.add_argument("patterns", nargs="*", help="Glob patterns of files to follow")
    return parser


def build_config(args: argparse.Namespace) -> TailerConfig:
    """
    Merge command-line durations over environment defaults.

    Raises:
        ConfigError: If a duration is invalid
    """
    base = TailerConfig.from_env()
    return TailerConfig(
        poll_interval_ms=args.poll_interval if args.poll_interval is not None else base.poll_interval_ms,
        scan_interval_ms=args.scan_interval if args.scan_interval is not None else base.scan_interval_ms,
        quiet_interval_ms=args.quiet_interval if args.quiet_interval is not None else base.quiet_interval_ms,
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.patterns:
        parser.print_usage(sys.stderr)
        logger.error("At least one glob pattern is required")
        return 1

    try:
        config = build_config(args)
        process = TailerProcess(args.patterns, config=config)
    except (ConfigError, NoPatternsError, BackendInitError) as e:
        logger.error("%s", e)
        return 1

    shutdown = GracefulShutdown()

    with process:
        process.start_async()

        logger.info("Patterns: %s", ", ".join(args.patterns))
        logger.info("Press Ctrl+C to stop")

        while not shutdown.should_exit:
            time.sleep(0.5)

    logger.info("Tailer stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
