"""Work-status get action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from work_status.store import FileStore

from .flags import add_work_flags, build_resource_id
from .format import print_status, print_table
from .output import CONDITION_KEYS, MANIFEST_KEYS, condition_rows, manifest_rows

_LOGGER = logging.getLogger(__name__)


class GetAction:
    """Get the status of a ManifestWork."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "get",
                help="Print the status of a ManifestWork",
                description="Print the conditions reported in a ManifestWork status.",
            ),
        )
        add_work_flags(args)
        args.add_argument(
            "--output",
            "-o",
            choices=["wide", "yaml", "json"],
            default=None,
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path,
        output,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        resource_id = build_resource_id(**kwargs)
        work = await FileStore(path).get(resource_id)
        _LOGGER.debug("Read %s at version %s", resource_id, work.resource_version)
        if output in ("yaml", "json"):
            print_status(work.status, output)
            return
        print_table(CONDITION_KEYS, condition_rows(work.status))
        if output == "wide" and (rows := manifest_rows(work.status)):
            print()
            print_table(MANIFEST_KEYS, rows)
