"""Semantic comparison of ManifestWork status objects.

Transition times are maintained by the condition merger and only move when a
condition status moves, so they are left out when deciding whether a status
has observably changed.
"""

from typing import Any

from .manifest import ManifestWorkStatus

__all__ = [
    "strip_transition_times",
    "semantic_equal",
]

TRANSITION_TIME_KEY = "lastTransitionTime"


def strip_transition_times(value: Any) -> Any:
    """Return a copy of a serialized object without any transition times."""
    if isinstance(value, dict):
        return {
            key: strip_transition_times(item)
            for key, item in value.items()
            if key != TRANSITION_TIME_KEY
        }
    if isinstance(value, list):
        return [strip_transition_times(item) for item in value]
    return value


def semantic_equal(a: ManifestWorkStatus, b: ManifestWorkStatus) -> bool:
    """Return True if both statuses are equal ignoring transition times."""
    return strip_transition_times(a.to_dict()) == strip_transition_times(b.to_dict())
