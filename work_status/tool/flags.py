"""Command line flags shared by the work-status actions."""

from argparse import ArgumentParser
import pathlib
from typing import Any

from work_status.manifest import (
    ConditionStatus,
    ManifestWork,
    NamedResource,
    StatusCondition,
)
from work_status.updater import UpdaterConfig


def add_work_flags(args: ArgumentParser) -> None:
    """Add flags that identify a ManifestWork in a store directory."""
    args.add_argument(
        "name",
        help="Name of the ManifestWork",
        type=str,
    )
    args.add_argument(
        "--path",
        help="Directory holding ManifestWork files as <namespace>/<name>.yaml",
        type=pathlib.Path,
        default=pathlib.Path("."),
    )
    args.add_argument(
        "--namespace",
        "-n",
        help="Namespace (managed cluster) of the ManifestWork",
        type=str,
        required=True,
    )


def build_resource_id(**kwargs: Any) -> NamedResource:
    """Return the resource identifier for the work flags."""
    return NamedResource(ManifestWork.kind, kwargs["namespace"], kwargs["name"])


def add_condition_flags(args: ArgumentParser) -> None:
    """Add flags that describe a single status condition."""
    args.add_argument(
        "--type",
        help="Type of the condition, e.g. Applied or Available",
        type=str,
        required=True,
    )
    args.add_argument(
        "--status",
        help="Status of the condition",
        choices=[status.value for status in ConditionStatus],
        required=True,
    )
    args.add_argument(
        "--reason",
        help="Machine-readable reason for the condition",
        type=str,
        default="",
    )
    args.add_argument(
        "--message",
        help="Human-readable message for the condition",
        type=str,
        default="",
    )


def build_condition(**kwargs: Any) -> StatusCondition:
    """Return the condition described by the condition flags."""
    return StatusCondition(
        type=kwargs["type"],
        status=ConditionStatus(kwargs["status"]),
        reason=kwargs.get("reason") or "",
        message=kwargs.get("message") or "",
    )


def add_updater_flags(args: ArgumentParser) -> None:
    """Add flags that control retrying on conflicting writes."""
    args.add_argument(
        "--timeout",
        help="Give up if the update has not completed after this many seconds",
        type=float,
        default=None,
    )
    args.add_argument(
        "--max-attempts",
        help="Give up after this many conflicting write attempts",
        type=int,
        default=None,
    )


def build_updater_config(**kwargs: Any) -> UpdaterConfig:
    """Return the updater configuration for the updater flags."""
    return UpdaterConfig(
        timeout=kwargs.get("timeout"),
        max_attempts=kwargs.get("max_attempts"),
    )
