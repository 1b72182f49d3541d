"""Storage layer.

The location store is the single source of truth for the route of the
current session; every other component reads snapshots from it.
"""

from pytrail.storage.backend import KeyValueBackend, MemoryBackend, SqliteBackend
from pytrail.storage.store import LocationStore

__all__ = ["KeyValueBackend", "LocationStore", "MemoryBackend", "SqliteBackend"]
