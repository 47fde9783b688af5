"""
The store module provides versioned access to ManifestWork objects.

- Uses NamedResource as the key for all objects.
- Every write advances an opaque resource version.
- Status writes are conditional on the version the writer last read, and are
  rejected with a VersionConflictError otherwise.

This abstract interface allows for various implementations (in-memory, files, etc.).
"""

from .store import Store, StoreEvent
from .in_memory import InMemoryStore
from .file import FileStore

__all__ = [
    "Store",
    "StoreEvent",
    "InMemoryStore",
    "FileStore",
]
