"""Test helpers for work-status tools."""

from pathlib import Path

from work_status.manifest import ManifestWork, ManifestWorkStatus

WORK_NAMESPACE = "cluster1"
WORK_NAME = "work1"


def write_work(root: Path, status: ManifestWorkStatus | None = None) -> Path:
    """Write a ManifestWork file into a store directory."""
    work = ManifestWork(
        name=WORK_NAME,
        namespace=WORK_NAMESPACE,
        resource_version="1",
        spec={"workload": {"manifests": []}},
        status=status or ManifestWorkStatus(),
    )
    path = root / WORK_NAMESPACE / f"{WORK_NAME}.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(work.yaml())
    return path
