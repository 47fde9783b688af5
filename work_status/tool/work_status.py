"""Command line tool for inspecting and updating ManifestWork status."""

import argparse
import asyncio
import logging
import sys
import traceback

from work_status.exceptions import WorkStatusException
from . import get, set_condition

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for ManifestWork status conditions.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    get.GetAction.register(subparsers)
    set_condition.SetConditionAction.register(subparsers)
    set_condition.SetManifestConditionAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Work-status command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except (WorkStatusException, TimeoutError) as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print(
            "work-status error: ", str(err) or type(err).__name__, file=sys.stderr
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
