"""Library for updating the status of a ManifestWork under optimistic concurrency.

The update is a read-modify-write loop:

  - Fetch a fresh copy of the ManifestWork from the store.
  - Apply the caller's update function to a copy of its status.
  - If nothing changed (ignoring transition times) return without writing.
  - Otherwise write the status with the fetched resource version as a
    precondition. When another writer got there first the store rejects the
    write with a `VersionConflictError` and the loop starts over with a fresh
    copy.

Update functions are replayed against fresh state on every attempt, so they
must only depend on the status they are given and their own arguments.

Example usage:

    status, updated = await update_manifest_work_status(
        store,
        NamedResource("ManifestWork", "cluster1", "work1"),
        update_status_condition_fn(
            StatusCondition(type="Applied", status=ConditionStatus.TRUE)
        ),
    )
"""

import asyncio
from collections.abc import Callable
import copy
from dataclasses import dataclass
import logging
import random

from .conditions import (
    find_manifest_condition,
    set_manifest_condition,
    set_status_condition,
)
from .context import UpdateTrace, update_trace
from .equality import semantic_equal
from .exceptions import MutationFailedError, VersionConflictError
from .manifest import (
    ManifestCondition,
    ManifestWorkStatus,
    NamedResource,
    StatusCondition,
)
from .store import Store

__all__ = [
    "UpdaterConfig",
    "UpdateStatusFunc",
    "update_manifest_work_status",
    "update_status_condition_fn",
    "update_manifest_condition_fn",
]

_LOGGER = logging.getLogger(__name__)


UpdateStatusFunc = Callable[[ManifestWorkStatus], None]
"""Mutates the status in place, raising an exception to abort the update."""


@dataclass
class UpdaterConfig:
    """Configuration for retrying status updates on conflict."""

    timeout: float | None = None
    """Deadline in seconds for the whole update, or None to wait indefinitely."""

    max_attempts: int | None = None
    """Number of write attempts before giving up on conflicts, or None for no limit."""

    delay: float = 0.01
    """Initial delay in seconds between conflicting attempts."""

    factor: float = 1.0
    """Multiplier applied to the delay after each conflict."""

    jitter: float = 0.1
    """Fraction of the delay added at random to spread out competing writers."""

    max_delay: float = 1.0
    """Upper bound of the delay before jitter."""

    def backoff(self, attempt: int) -> float:
        """Return the delay before the next attempt after `attempt` conflicts."""
        wait = min(self.max_delay, self.delay * self.factor ** (attempt - 1))
        if self.jitter > 0:
            wait += random.uniform(0, self.jitter * wait)
        return wait


async def update_manifest_work_status(
    store: Store,
    resource_id: NamedResource,
    update_fn: UpdateStatusFunc,
    config: UpdaterConfig | None = None,
) -> tuple[ManifestWorkStatus, bool]:
    """Apply `update_fn` to the status of a ManifestWork and persist the result.

    Returns the resulting status and whether a write was made.

    Raises:
        ObjectNotFoundError: If the ManifestWork does not exist.
        FetchFailedError: If the ManifestWork could not be read.
        MutationFailedError: If `update_fn` raised an exception.
        WriteFailedError: If the write failed for a reason other than a conflict.
        VersionConflictError: Only when `max_attempts` is set and exhausted.
        TimeoutError: If `timeout` is set and expires.
    """
    config = config or UpdaterConfig()
    with update_trace(resource_id) as record:
        async with asyncio.timeout(config.timeout):
            status, updated = await _update_with_retry(
                store, resource_id, update_fn, config, record
            )
        record.updated = updated
        return status, updated


async def _update_with_retry(
    store: Store,
    resource_id: NamedResource,
    update_fn: UpdateStatusFunc,
    config: UpdaterConfig,
    record: UpdateTrace,
) -> tuple[ManifestWorkStatus, bool]:
    while True:
        record.attempts += 1
        work = await store.get(resource_id)
        status = copy.deepcopy(work.status)
        try:
            update_fn(status)
        except Exception as err:
            raise MutationFailedError(resource_id.namespaced_name, str(err)) from err

        if semantic_equal(work.status, status):
            _LOGGER.debug(
                "Status of %s unchanged at version %s, skipping write",
                resource_id,
                work.resource_version,
            )
            return work.status, False

        work.status = status
        try:
            persisted = await store.update_status(work)
        except VersionConflictError as err:
            record.conflicts += 1
            if (
                config.max_attempts is not None
                and record.attempts >= config.max_attempts
            ):
                _LOGGER.warning(
                    "Giving up status update of %s after %d attempts: %s",
                    resource_id,
                    record.attempts,
                    err,
                )
                raise
            wait = config.backoff(record.attempts)
            _LOGGER.debug(
                "Conflict updating %s (attempt %d), retrying in %0.3fs",
                resource_id,
                record.attempts,
                wait,
            )
            await asyncio.sleep(wait)
            continue

        _LOGGER.info(
            "Updated status of %s to version %s",
            resource_id,
            persisted.resource_version,
        )
        return persisted.status, True


def update_status_condition_fn(condition: StatusCondition) -> UpdateStatusFunc:
    """Return an update function that merges a condition into the work conditions."""

    def update(status: ManifestWorkStatus) -> None:
        set_status_condition(status.conditions, condition)

    return update


def update_manifest_condition_fn(
    manifest_condition: ManifestCondition,
) -> UpdateStatusFunc:
    """Return an update function that sets the conditions of one manifest.

    The given conditions are merged into those already reported for the same
    manifest so unchanged conditions keep their transition time, then the
    manifest entry is replaced.
    """

    def update(status: ManifestWorkStatus) -> None:
        manifests = status.resource_status.manifests
        meta = manifest_condition.resource_meta
        conditions: list[StatusCondition] = []
        existing = find_manifest_condition(manifests, meta.ordinal)
        if existing is not None and existing.resource_meta.resource == meta.resource:
            conditions = copy.deepcopy(existing.conditions)
        for condition in manifest_condition.conditions:
            set_status_condition(conditions, condition)
        set_manifest_condition(
            manifests,
            ManifestCondition(resource_meta=meta, conditions=conditions),
        )

    return update
