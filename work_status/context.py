"""Tracing of status updates for debug logging.

An `UpdateTrace` follows one call to update the status of a ManifestWork and
counts what happened in the retry loop. Its exit line reports the attempts,
conflicts, outcome and elapsed time:

    [Trace] < Update status cluster1/work1 attempts=2 conflicts=1 updated=True (0.02s)
"""

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
import logging
from time import perf_counter

from .manifest import NamedResource

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "UpdateTrace",
    "update_trace",
]


@dataclass
class UpdateTrace:
    """Counters for one status update of a ManifestWork."""

    resource_id: NamedResource

    attempts: int = 0
    """Number of times the object was fetched and the update applied."""

    conflicts: int = 0
    """Number of writes rejected because of a stale resource version."""

    updated: bool | None = None
    """Whether a write was made, or None if the update did not finish."""


@contextmanager
def update_trace(resource_id: NamedResource) -> Generator[UpdateTrace, None, None]:
    """Log entry and exit of a status update with the counters collected."""
    record = UpdateTrace(resource_id)
    label = f"Update status {resource_id.namespaced_name}"
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield record
    finally:
        t2 = perf_counter()
        _LOGGER.debug(
            "[Trace] < %s attempts=%d conflicts=%d updated=%s (%0.2fs)",
            label,
            record.attempts,
            record.conflicts,
            record.updated,
            (t2 - t1),
        )
