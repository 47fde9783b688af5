"""Module for a ManifestWork store backed by YAML files on disk.

Each object is stored as a single document at `<root>/<namespace>/<name>.yaml`.
Writes go to a uniquely named temporary file that is renamed over the
original, so readers never observe a partially written document.

Writers take an exclusive `flock` on a sibling `.<name>.yaml.lock` file for
the read, version check and rename. The lock is shared by every store
instance and process using the same directory, so a writer holding a stale
version always gets a `VersionConflictError` rather than overwriting a newer
status.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import fcntl
import logging
import os
from pathlib import Path
import tempfile
from typing import DefaultDict

import aiofiles.os

from work_status.exceptions import (
    FetchFailedError,
    InputException,
    ObjectNotFoundError,
    VersionConflictError,
    WriteFailedError,
)
from work_status.manifest import (
    ManifestWork,
    NamedResource,
    read_manifest_work,
    write_manifest_work,
)

from .store import Store, next_version

_LOGGER = logging.getLogger(__name__)

SUFFIX = ".yaml"

LOCK_POLL_INTERVAL = 0.005
"""Seconds between attempts to take a lock held by another writer."""


class FileStore(Store):
    """Store implementation that persists ManifestWork objects as YAML files."""

    def __init__(self, root: Path) -> None:
        """Initialize the FileStore rooted at the given directory."""
        self._root = root
        self._locks: DefaultDict[Path, asyncio.Lock] = defaultdict(asyncio.Lock)

    def path(self, resource_id: NamedResource) -> Path:
        """Return the path of the file holding the object."""
        namespace_dir = self._root / (resource_id.namespace or "")
        return namespace_dir / f"{resource_id.name}{SUFFIX}"

    async def add_object(self, work: ManifestWork) -> ManifestWork:
        """Create or replace a ManifestWork, returning the stored copy with its new version."""
        resource_id = work.resource_id
        path = self.path(resource_id)
        try:
            await aiofiles.os.makedirs(str(path.parent), exist_ok=True)
        except OSError as err:
            raise WriteFailedError(
                f"Failed to create directory for {resource_id}: {err}"
            ) from err
        async with self._write_lock(resource_id):
            current_version = None
            if await aiofiles.os.path.exists(str(path)):
                current_version = (await self._read(resource_id)).resource_version
            stored = ManifestWork(
                name=work.name,
                namespace=work.namespace,
                resource_version=next_version(resource_id, current_version),
                spec=work.spec,
                status=work.status,
            )
            await self._write(path, stored)
        _LOGGER.debug(
            "Added object %s at version %s", resource_id, stored.resource_version
        )
        return await self.get(resource_id)

    async def get(self, resource_id: NamedResource) -> ManifestWork:
        """Fetch a fresh copy of a ManifestWork from disk."""
        return await self._read(resource_id)

    async def update_status(self, work: ManifestWork) -> ManifestWork:
        """Persist the status of a ManifestWork if its version matches."""
        resource_id = work.resource_id
        path = self.path(resource_id)
        async with self._write_lock(resource_id):
            existing = await self._read(resource_id)
            if existing.resource_version != work.resource_version:
                raise VersionConflictError(
                    resource_id.namespaced_name,
                    work.resource_version,
                    existing.resource_version,
                )
            existing.status = work.status
            existing.resource_version = next_version(
                resource_id, existing.resource_version
            )
            await self._write(path, existing)
        _LOGGER.debug(
            "Updated status for %s to version %s",
            resource_id,
            existing.resource_version,
        )
        return await self.get(resource_id)

    @asynccontextmanager
    async def _write_lock(
        self, resource_id: NamedResource
    ) -> AsyncGenerator[None, None]:
        """Hold the exclusive write lock of an object.

        Writers in this store wait on an asyncio lock, and only the holder
        polls the file lock, which is held by other stores or processes.
        """
        path = self.path(resource_id)
        lock_path = path.with_name(f".{path.name}.lock")
        async with self._locks[path]:
            try:
                fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o644)
            except FileNotFoundError as err:
                raise ObjectNotFoundError(
                    f"Object {resource_id} not found at {path}"
                ) from err
            except OSError as err:
                raise WriteFailedError(
                    f"Failed to open lock {lock_path} for {resource_id}: {err}"
                ) from err
            try:
                while True:
                    try:
                        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                        break
                    except BlockingIOError:
                        await asyncio.sleep(LOCK_POLL_INTERVAL)
                yield
            finally:
                # Closing the descriptor releases the lock
                os.close(fd)

    async def _read(self, resource_id: NamedResource) -> ManifestWork:
        path = self.path(resource_id)
        try:
            work = await read_manifest_work(path)
        except FileNotFoundError as err:
            raise ObjectNotFoundError(
                f"Object {resource_id} not found at {path}"
            ) from err
        except OSError as err:
            raise FetchFailedError(
                f"Failed to read {resource_id} from {path}: {err}"
            ) from err
        except InputException as err:
            raise FetchFailedError(
                f"Failed to read {resource_id} from {path}: {err}"
            ) from err
        if work.resource_id != resource_id:
            raise FetchFailedError(
                f"File {path} contains {work.resource_id}, expected {resource_id}"
            )
        return work

    async def _write(self, path: Path, work: ManifestWork) -> None:
        tmp_path: Path | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
            )
            os.close(fd)
            tmp_path = Path(tmp_name)
            await write_manifest_work(tmp_path, work)
            await aiofiles.os.replace(str(tmp_path), str(path))
            tmp_path = None
        except OSError as err:
            raise WriteFailedError(
                f"Failed to write {work.resource_id} to {path}: {err}"
            ) from err
        finally:
            if tmp_path is not None and await aiofiles.os.path.exists(str(tmp_path)):
                await aiofiles.os.remove(str(tmp_path))
