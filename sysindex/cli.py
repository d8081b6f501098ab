"""Command-line entry point for sysindex.

Report commands collect once, print, and exit. ``tui`` hands over to the
dashboard's refresh loop.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from sysindex import __version__
from sysindex.collector import CollectionError, collect
from sysindex.config import dump_default_config, load_config
from sysindex.dashboard import TerminalError, run_dashboard
from sysindex.report import REPORTS, snapshot_to_dict

logger = logging.getLogger("sysindex")

EXIT_COLLECTION = 1
EXIT_TERMINAL = 2
EXIT_INTERRUPTED = 130

COMMAND_HELP = {
    "overview": "Display system overview",
    "cpu": "Display CPU information",
    "memory": "Display memory information",
    "disks": "Display disk information",
    "network": "Display network information",
    "all": "Display all system information",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sysindex",
        description="Display comprehensive system information.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log debug details to stderr",
    )
    parser.add_argument(
        "--dump-config", action="store_true",
        help="Print the default configuration as TOML and exit",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    for name, help_text in COMMAND_HELP.items():
        cmd = sub.add_parser(name, help=help_text, description=help_text)
        cmd.add_argument("--json", action="store_true", help="Print the raw snapshot as JSON")

    tui = sub.add_parser("tui", help="Start the interactive dashboard")
    tui.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between refreshes (default: 2, or the config value)",
    )
    return parser


def default_command() -> str:
    """Bare ``sysindex`` opens the dashboard on a terminal, else prints the overview."""
    return "tui" if sys.stdin.isatty() and sys.stdout.isatty() else "overview"


def _configure_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("sysindex: %(levelname)s: %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _run_report(command: str, as_json: bool) -> int:
    try:
        snapshot = collect()
    except CollectionError as e:
        print(f"sysindex: error: {e}", file=sys.stderr)
        return EXIT_COLLECTION

    if as_json:
        print(json.dumps(snapshot_to_dict(snapshot), indent=2))
    else:
        print(REPORTS[command](snapshot))
    return 0


def _run_tui(interval: float, thresholds: dict) -> int:
    # stderr logging would scribble over the curses screen
    logger.setLevel(logging.CRITICAL)
    try:
        run_dashboard(interval, thresholds)
    except TerminalError as e:
        print(f"sysindex: error: {e}", file=sys.stderr)
        return EXIT_TERMINAL
    except CollectionError as e:
        print(f"sysindex: error: {e}", file=sys.stderr)
        return EXIT_COLLECTION
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.dump_config:
        print(dump_default_config(), end="")
        return 0

    config = load_config(args.config)
    command = args.command or default_command()
    logger.debug("running command %s", command)

    if command == "tui":
        interval = getattr(args, "interval", None)
        if interval is None:
            interval = config["interval"]
        return _run_tui(max(0.1, interval), config["thresholds"])

    return _run_report(command, getattr(args, "json", False))


def entry() -> None:
    sys.exit(main())


if __name__ == "__main__":
    entry()
