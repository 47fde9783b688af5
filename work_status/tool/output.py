"""Helpers for rendering ManifestWork status as rows."""

from typing import Any

from work_status.manifest import ManifestWorkStatus, format_time

CONDITION_KEYS = ["type", "status", "reason", "message", "last_transition"]
MANIFEST_KEYS = ["ordinal", "resource"] + CONDITION_KEYS


def condition_rows(status: ManifestWorkStatus) -> list[dict[str, Any]]:
    """Return one row per work condition."""
    return [
        {
            "type": condition.type,
            "status": str(condition.status),
            "reason": condition.reason,
            "message": condition.message,
            "last_transition": format_time(condition.last_transition_time),
        }
        for condition in status.conditions
    ]


def manifest_rows(status: ManifestWorkStatus) -> list[dict[str, Any]]:
    """Return one row per condition of each manifest."""
    rows = []
    for manifest in status.resource_status.manifests:
        for condition in manifest.conditions:
            rows.append(
                {
                    "ordinal": manifest.resource_meta.ordinal,
                    "resource": manifest.resource_meta.resource,
                    "type": condition.type,
                    "status": str(condition.status),
                    "reason": condition.reason,
                    "message": condition.message,
                    "last_transition": format_time(condition.last_transition_time),
                }
            )
    return rows
