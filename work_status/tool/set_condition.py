"""Work-status actions that set conditions on a ManifestWork status."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from work_status.manifest import ManifestCondition, ManifestResourceMeta
from work_status.store import FileStore
from work_status.updater import (
    update_manifest_condition_fn,
    update_manifest_work_status,
    update_status_condition_fn,
)

from .flags import (
    add_condition_flags,
    add_updater_flags,
    add_work_flags,
    build_condition,
    build_resource_id,
    build_updater_config,
)
from .format import print_table
from .output import CONDITION_KEYS, MANIFEST_KEYS, condition_rows, manifest_rows

_LOGGER = logging.getLogger(__name__)

UPDATED = "updated"
UNCHANGED = "unchanged"


class SetConditionAction:
    """Set a condition of a ManifestWork."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "set-condition",
                help="Set a condition of a ManifestWork",
                description=(
                    "Merge a condition into the ManifestWork status. The transition "
                    "time only moves when the condition status changes."
                ),
            ),
        )
        add_work_flags(args)
        add_condition_flags(args)
        add_updater_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        status, updated = await update_manifest_work_status(
            FileStore(path),
            build_resource_id(**kwargs),
            update_status_condition_fn(build_condition(**kwargs)),
            build_updater_config(**kwargs),
        )
        print(UPDATED if updated else UNCHANGED)
        print_table(CONDITION_KEYS, condition_rows(status))


class SetManifestConditionAction:
    """Set a condition of one manifest of a ManifestWork."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "set-manifest-condition",
                help="Set a condition of one manifest of a ManifestWork",
                description=(
                    "Merge a condition into the status of the manifest at the "
                    "given ordinal, replacing the manifest entry."
                ),
            ),
        )
        add_work_flags(args)
        args.add_argument(
            "--ordinal",
            help="Position of the manifest in the ManifestWork spec",
            type=int,
            required=True,
        )
        args.add_argument(
            "--resource",
            help="Resource name of the manifest kind, e.g. deployments",
            type=str,
            required=True,
        )
        add_condition_flags(args)
        add_updater_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path,
        ordinal,
        resource,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        manifest_condition = ManifestCondition(
            resource_meta=ManifestResourceMeta(ordinal=ordinal, resource=resource),
            conditions=[build_condition(**kwargs)],
        )
        status, updated = await update_manifest_work_status(
            FileStore(path),
            build_resource_id(**kwargs),
            update_manifest_condition_fn(manifest_condition),
            build_updater_config(**kwargs),
        )
        print(UPDATED if updated else UNCHANGED)
        print_table(MANIFEST_KEYS, manifest_rows(status))
