"""Command-line interface for redfish-powermon."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__, constants
from .app import PowerMonApp
from .config import ConfigurationError, load_config
from .session import SessionAcquisitionError
from .terminal import TerminalSetupError

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=constants.APP_NAME,
        description="Live power and thermal dashboard for Redfish management controllers",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser(
        "watch", help="Poll the controllers and show the dashboard"
    )
    watch_parser.add_argument(
        "addresses",
        nargs="*",
        metavar="ADDRESS",
        help="Controller host or IP, in display order (overrides [controllers] addresses)",
    )
    watch_parser.add_argument("--username", help="Redfish login user name")
    watch_parser.add_argument("--password", help="Redfish login password")

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def _fail(message: str) -> int:
    print(f"{constants.APP_NAME}: {message}", file=sys.stderr)
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.command == "watch":
        try:
            config.with_overrides(
                addresses=args.addresses,
                username=args.username,
                password=args.password,
            )
        except ConfigurationError as exc:
            return _fail(str(exc))

        try:
            PowerMonApp.start(config)
        except SessionAcquisitionError as exc:
            return _fail(f"Login failed: {exc}")
        except TerminalSetupError as exc:
            return _fail(f"Terminal setup failed: {exc}")
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                if key == "password":
                    value = "****"
                print(f"{key} = {value}")
            print()
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
