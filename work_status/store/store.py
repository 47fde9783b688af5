"""Store module for reading and writing ManifestWork status under optimistic concurrency."""

from abc import ABC, abstractmethod
from enum import Enum

from work_status.exceptions import WriteFailedError
from work_status.manifest import ManifestWork, NamedResource


class StoreEvent(str, Enum):
    """Enum for store events."""

    OBJECT_ADDED = "object_added"
    STATUS_UPDATED = "status_updated"


def next_version(resource_id: NamedResource, current: str | None) -> str:
    """Return the resource version that follows the current one."""
    if current is None:
        return "1"
    try:
        return str(int(current) + 1)
    except ValueError as err:
        raise WriteFailedError(
            f"Resource {resource_id.namespaced_name} has non-numeric resourceVersion '{current}'"
        ) from err


class Store(ABC):
    """Abstract base class for a versioned ManifestWork store.

    Every object carries an opaque resource version that the store advances on
    each write. Status writes are conditional on the version the writer read,
    which is the single point of mutual exclusion between concurrent writers.
    """

    @abstractmethod
    async def add_object(self, work: ManifestWork) -> ManifestWork:
        """Create or replace a ManifestWork, returning the stored copy with its new version."""

    @abstractmethod
    async def get(self, resource_id: NamedResource) -> ManifestWork:
        """Fetch a fresh copy of a ManifestWork.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            FetchFailedError: If the object could not be read.
        """

    @abstractmethod
    async def update_status(self, work: ManifestWork) -> ManifestWork:
        """Persist the status of a ManifestWork.

        The write only succeeds when `work.resource_version` matches the stored
        version. The persisted copy with its new version is returned.

        Raises:
            VersionConflictError: If the stored version has advanced.
            ObjectNotFoundError: If the object no longer exists.
            WriteFailedError: If the write failed for any other reason.
        """
