"""Module for in memory ManifestWork store."""

import asyncio
import copy
from collections import defaultdict
from collections.abc import Callable
import logging
from typing import Any, DefaultDict

from work_status.exceptions import ObjectNotFoundError, VersionConflictError
from work_status.manifest import ManifestWork, NamedResource

from .store import Store, StoreEvent, next_version

_LOGGER = logging.getLogger(__name__)


class InMemoryStore(Store):
    """In-memory implementation of the Store interface.

    Objects are copied on the way in and out so callers never share state with
    the store. Supports event listeners for object and status changes.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryStore."""
        self._objects: dict[NamedResource, ManifestWork] = {}
        self._lock = asyncio.Lock()
        self._listeners: DefaultDict[StoreEvent, list[Callable[..., None]]] = (
            defaultdict(list)
        )

    async def add_object(self, work: ManifestWork) -> ManifestWork:
        """Create or replace a ManifestWork, returning the stored copy with its new version."""
        resource_id = work.resource_id
        async with self._lock:
            existing = self._objects.get(resource_id)
            stored = copy.deepcopy(work)
            stored.resource_version = next_version(
                resource_id, existing.resource_version if existing else None
            )
            _LOGGER.debug(
                "Adding object %s to store at version %s",
                resource_id,
                stored.resource_version,
            )
            self._objects[resource_id] = stored
        self._fire_event(StoreEvent.OBJECT_ADDED, resource_id, copy.deepcopy(stored))
        return copy.deepcopy(stored)

    async def get(self, resource_id: NamedResource) -> ManifestWork:
        """Fetch a fresh copy of a ManifestWork."""
        if (work := self._objects.get(resource_id)) is None:
            raise ObjectNotFoundError(f"Object {resource_id} not found in store")
        return copy.deepcopy(work)

    async def update_status(self, work: ManifestWork) -> ManifestWork:
        """Persist the status of a ManifestWork if its version matches."""
        resource_id = work.resource_id
        async with self._lock:
            if (existing := self._objects.get(resource_id)) is None:
                raise ObjectNotFoundError(f"Object {resource_id} not found in store")
            if existing.resource_version != work.resource_version:
                _LOGGER.debug(
                    "Rejecting status update for %s at version %s (stored %s)",
                    resource_id,
                    work.resource_version,
                    existing.resource_version,
                )
                raise VersionConflictError(
                    resource_id.namespaced_name,
                    work.resource_version,
                    existing.resource_version,
                )
            stored = copy.deepcopy(existing)
            stored.status = copy.deepcopy(work.status)
            stored.resource_version = next_version(
                resource_id, existing.resource_version
            )
            self._objects[resource_id] = stored
            _LOGGER.debug(
                "Updated status for %s to version %s",
                resource_id,
                stored.resource_version,
            )
        self._fire_event(
            StoreEvent.STATUS_UPDATED, resource_id, copy.deepcopy(stored.status)
        )
        return copy.deepcopy(stored)

    def list_objects(self, namespace: str | None = None) -> list[ManifestWork]:
        """List copies of all objects in the store, optionally filtered by namespace."""
        return [
            copy.deepcopy(work)
            for work in self._objects.values()
            if namespace is None or work.namespace == namespace
        ]

    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, Any], None],
        flush: bool = False,
    ) -> Callable[[], None]:
        """Register a callback for a specific event (object added, status updated).

        Returns a callable that can be called to remove the listener.
        """

        def remove() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        self._listeners[event].append(callback)

        if flush:
            _LOGGER.debug("Flushing objects for event type %s", event)
            for resource_id, work in list(self._objects.items()):
                if event == StoreEvent.OBJECT_ADDED:
                    callback(resource_id, copy.deepcopy(work))
                elif event == StoreEvent.STATUS_UPDATED:
                    callback(resource_id, copy.deepcopy(work.status))

        return remove

    def _fire_event(self, event: StoreEvent, *args: Any) -> None:
        for cb in list(self._listeners[event]):  # Iterate over a copy for safe removal
            try:
                cb(*args)
            except Exception:
                _LOGGER.exception("Store listener callback failed for event %s", event)
