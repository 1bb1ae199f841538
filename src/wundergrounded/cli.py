"""Command-line interface for wundergrounded.

Fetches one or more Weather Underground features in a single batched call.

Usage:
    wundergrounded fetch 94107 conditions forecast
    wundergrounded fetch CA/San_Francisco almanac --history 2024-01-15
    wundergrounded fetch 94107 tide --planner 0601 0615 --format json
    wundergrounded features
"""

import argparse
import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from wundergrounded import __version__
from wundergrounded.clients.wunderground import DATED_FEATURES, FEATURES, WundergroundClient
from wundergrounded.config import settings
from wundergrounded.errors import WundergroundError

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1)


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="wundergrounded",
        description="wundergrounded: batched Weather Underground client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wundergrounded fetch 94107 conditions forecast
  wundergrounded fetch CA/San_Francisco almanac --history 2024-01-15
  wundergrounded fetch 94107 --planner 0601 0615 --format json
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # fetch command
    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch features for a location in one request",
        description="Queue the given features and send them as one request",
    )
    fetch_parser.add_argument(
        "query",
        type=str,
        help="Location (e.g., 94107, CA/San_Francisco, 37.8,-122.4)",
    )
    fetch_parser.add_argument(
        "features",
        nargs="*",
        metavar="FEATURE",
        help="Features to fetch (see 'wundergrounded features')",
    )
    fetch_parser.add_argument(
        "--history",
        type=str,
        default=None,
        metavar="DATE",
        help="Also fetch observations for DATE (YYYYMMDD or YYYY-MM-DD)",
    )
    fetch_parser.add_argument(
        "--planner",
        type=str,
        nargs=2,
        default=None,
        metavar=("START", "END"),
        help="Also fetch the travel planner for START..END (MMDD)",
    )
    fetch_parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="API key (default: WUNDERGROUND_API_KEY)",
    )
    fetch_parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    fetch_parser.add_argument(
        "--debug",
        action="store_true",
        help="Log request traces",
    )

    subparsers.add_parser(
        "features",
        help="List supported features",
    )

    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context.

    Spins up a new event loop in a dedicated thread to avoid conflicts
    with any existing event loop.
    """
    def _target():
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    future = _executor.submit(_target)
    return future.result()


async def _fetch(args: argparse.Namespace) -> Any:
    """Queue every requested feature and send them in one call."""
    async with WundergroundClient(api_key=args.api_key, debug=args.debug) as client:
        for feature in args.features:
            getattr(client, feature)()

        problems: list[WundergroundError] = []

        def _collect(error, data):
            if error is not None:
                problems.append(error)

        if args.history:
            client.history(args.history, callback=_collect)
        if args.planner:
            client.planner(args.planner[0], args.planner[1], callback=_collect)
        if problems:
            raise problems[0]

        outcome = await client.execute(args.query, lambda error, data: None)
        return outcome.raise_for_error()


def _format_text(data: Any) -> str:
    """Short human-readable summary, falling back to the raw keys."""
    lines = []
    observation = data.get("current_observation") if isinstance(data, dict) else None
    if observation:
        location = observation.get("display_location", {}).get("full", "")
        lines.append(f"{location}: {observation.get('weather', '')}, {observation.get('temperature_string', '')}")
    if isinstance(data, dict):
        sections = sorted(k for k in data if k != "response")
        lines.append("Sections: " + ", ".join(sections))
    return "\n".join(lines)


def cmd_fetch(args: argparse.Namespace) -> int:
    """Execute the fetch command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    if not args.features and not args.history and not args.planner:
        print("Error: no features requested", file=sys.stderr)
        return 1

    unknown = [name for name in args.features if name not in FEATURES]
    if unknown:
        print(f"Error: unknown feature(s): {', '.join(unknown)}", file=sys.stderr)
        return 1

    try:
        logger.info(
            "Fetching %s for %s",
            ", ".join(args.features) or "dated features", args.query,
        )
        data = _run_async(_fetch(args))

        if args.format == "json":
            print(json.dumps(data, indent=2))
        else:
            print(_format_text(data))

        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Fetch failed: %s", e, exc_info=args.debug)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_features(args: argparse.Namespace) -> int:
    """Print every supported feature, one per line."""
    for name in FEATURES:
        print(name)
    for name in DATED_FEATURES:
        print(f"{name} (dated)")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    print(f"wundergrounded v{__version__}")
    print("Batched Weather Underground client")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if getattr(args, "debug", False) else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Route to command handler
    if args.command == "fetch":
        return cmd_fetch(args)
    elif args.command == "features":
        return cmd_features(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        # No command specified
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
