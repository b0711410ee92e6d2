"""Named cache stores.

A :class:`CacheStorage` owns any number of named :class:`CacheStore`
handles.  Two backends are provided: an in-memory one that lives for the
worker's lifetime, and a diskcache-backed one that persists across
sessions.
"""

from pyflkrd.storage.base import CacheStorage, CacheStore
from pyflkrd.storage.disk import DiskCacheStorage
from pyflkrd.storage.memory import MemoryCacheStorage

__all__ = [
    "CacheStorage",
    "CacheStore",
    "DiskCacheStorage",
    "MemoryCacheStorage",
]
