"""Library for merging conditions into a ManifestWork status.

Conditions are kept in ordered lists that the caller owns. The functions here
update those lists in place and never keep references to their arguments.

A `StatusCondition` is keyed by its `type`. Its `last_transition_time` marks
when the status value last changed, so it is carried forward untouched when a
merge only changes the reason or message.

A `ManifestCondition` occupies the slot of its manifest ordinal. Merging an
entry with the same ordinal replaces the whole entry, resource meta included,
in place.
"""

import copy
from datetime import datetime, timezone
import logging

from .manifest import ConditionStatus, ManifestCondition, StatusCondition

__all__ = [
    "set_status_condition",
    "find_status_condition",
    "remove_status_condition",
    "is_status_condition_true",
    "is_status_condition_false",
    "is_status_condition_present_and_equal",
    "set_manifest_condition",
    "find_manifest_condition",
]

_LOGGER = logging.getLogger(__name__)


def now() -> datetime:
    """Current time truncated to the precision of a serialized timestamp."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def set_status_condition(
    conditions: list[StatusCondition], new_condition: StatusCondition
) -> None:
    """Insert or update a condition in the list, keyed by type."""
    existing = find_status_condition(conditions, new_condition.type)
    if existing is None:
        condition = copy.deepcopy(new_condition)
        if condition.last_transition_time is None:
            condition.last_transition_time = now()
        _LOGGER.debug("Adding condition %s=%s", condition.type, condition.status)
        conditions.append(condition)
        return

    if existing.status != new_condition.status:
        _LOGGER.debug(
            "Condition %s transitioned %s -> %s",
            existing.type,
            existing.status,
            new_condition.status,
        )
        existing.status = new_condition.status
        existing.last_transition_time = new_condition.last_transition_time or now()

    existing.reason = new_condition.reason
    existing.message = new_condition.message


def find_status_condition(
    conditions: list[StatusCondition], condition_type: str
) -> StatusCondition | None:
    """Return the condition with the given type or None if not present."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def remove_status_condition(
    conditions: list[StatusCondition], condition_type: str
) -> None:
    """Remove the condition with the given type, if present."""
    conditions[:] = [c for c in conditions if c.type != condition_type]


def is_status_condition_present_and_equal(
    conditions: list[StatusCondition],
    condition_type: str,
    status: ConditionStatus,
) -> bool:
    """Return True if the condition is present with the given status."""
    condition = find_status_condition(conditions, condition_type)
    return condition is not None and condition.status == status


def is_status_condition_true(
    conditions: list[StatusCondition], condition_type: str
) -> bool:
    return is_status_condition_present_and_equal(
        conditions, condition_type, ConditionStatus.TRUE
    )


def is_status_condition_false(
    conditions: list[StatusCondition], condition_type: str
) -> bool:
    return is_status_condition_present_and_equal(
        conditions, condition_type, ConditionStatus.FALSE
    )


def set_manifest_condition(
    manifests: list[ManifestCondition], new_condition: ManifestCondition
) -> None:
    """Insert or replace a manifest condition, keyed by manifest ordinal.

    The existing entry is replaced as a whole, including its conditions. Callers
    that want to keep transition times of the inner conditions merge them with
    `set_status_condition` before calling this.
    """
    condition = copy.deepcopy(new_condition)
    for i, existing in enumerate(manifests):
        if existing.resource_meta.ordinal == condition.resource_meta.ordinal:
            manifests[i] = condition
            return
    manifests.append(condition)


def find_manifest_condition(
    manifests: list[ManifestCondition], ordinal: int
) -> ManifestCondition | None:
    """Return the manifest condition for the ordinal or None if not present."""
    for manifest in manifests:
        if manifest.resource_meta.ordinal == ordinal:
            return manifest
    return None
