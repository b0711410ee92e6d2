"""diskcache-backed cache storage that survives worker restarts.

Layout under the storage directory::

    index/            diskcache.Index of store name -> directory token,
                      iterated in creation order
    stores/<token>/   one diskcache.Cache per named store, keyed by URL

Every call runs in :func:`asyncio.to_thread`; diskcache itself is safe to
share between threads and processes.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import sqlite3
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

import diskcache

from pyflkrd.exceptions import CacheStoreError
from pyflkrd.models.response import CachedResponse

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_DISK_ERRORS = (diskcache.Timeout, sqlite3.Error, OSError)


def _load(value: Any) -> CachedResponse | None:
    return CachedResponse.model_validate(value) if value is not None else None


class DiskCacheStore:
    """Handle to one named store inside a :class:`DiskCacheStorage`."""

    def __init__(self, name: str, storage: DiskCacheStorage) -> None:
        self._name = name
        self._storage = storage

    @property
    def name(self) -> str:
        return self._name

    async def _run(self, fn: Callable[[diskcache.Cache], T]) -> T:
        def _call() -> T:
            return fn(self._storage._cache_for(self._name))  # noqa: SLF001

        return await self._storage._run(_call, store=self._name)  # noqa: SLF001

    def _require_alive(self) -> None:
        if self._name not in self._storage._index():  # noqa: SLF001
            raise CacheStoreError(f"Cache store {self._name!r} was deleted", store=self._name)

    async def match(self, key: str) -> CachedResponse | None:
        return _load(await self._run(lambda cache: cache.get(key)))

    async def put(self, key: str, response: CachedResponse) -> None:
        await self.put_all([(key, response)])

    async def put_all(self, entries: Sequence[tuple[str, CachedResponse]]) -> None:
        values = [(key, response.model_dump()) for key, response in entries]

        def _put(cache: diskcache.Cache) -> None:
            self._require_alive()
            with cache.transact():
                for key, value in values:
                    cache.set(key, value)

        await self._run(_put)

    async def delete(self, key: str) -> bool:
        return bool(await self._run(lambda cache: cache.delete(key)))

    async def keys(self) -> list[str]:
        return await self._run(lambda cache: list(cache))

    async def size_bytes(self) -> int:
        def _size(cache: diskcache.Cache) -> int:
            total = 0
            for key in cache:
                value = cache.get(key)
                if value is not None:
                    total += len(value["body"])
            return total

        return await self._run(_size)


class DiskCacheStorage:
    """Named stores persisted under one directory.

    Handles to the underlying caches open lazily and reopen after
    :meth:`close`, so one storage object can serve several worker sessions.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._lock = threading.Lock()
        self._index_cache: diskcache.Cache | None = None
        self._names: diskcache.Index | None = None
        self._caches: dict[str, diskcache.Cache] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    async def _run(self, fn: Callable[[], T], *, store: str = "") -> T:
        try:
            return await asyncio.to_thread(fn)
        except _DISK_ERRORS as exc:
            raise CacheStoreError(f"Cache storage at {self._directory} failed: {exc}", store=store) from exc

    def _index(self) -> diskcache.Index:
        with self._lock:
            if self._names is None:
                self._index_cache = diskcache.Cache(str(self._directory / "index"))
                self._names = diskcache.Index.fromcache(self._index_cache)
                _logger.debug("Opened cache storage %s", self._directory)
            return self._names

    @staticmethod
    def _token(name: str) -> str:
        return hashlib.sha256(name.encode("utf-8")).hexdigest()[:16]

    def _cache_for(self, name: str) -> diskcache.Cache:
        with self._lock:
            cache = self._caches.get(name)
            if cache is None:
                cache = diskcache.Cache(str(self._directory / "stores" / self._token(name)))
                self._caches[name] = cache
            return cache

    async def open(self, name: str) -> DiskCacheStore:
        def _open() -> None:
            self._index().setdefault(name, self._token(name))

        await self._run(_open, store=name)
        return DiskCacheStore(name, self)

    async def has(self, name: str) -> bool:
        return await self._run(lambda: name in self._index(), store=name)

    async def delete(self, name: str) -> bool:
        def _delete() -> bool:
            index = self._index()
            if name not in index:
                return False
            del index[name]
            self._cache_for(name).clear()
            return True

        return await self._run(_delete, store=name)

    async def keys(self) -> list[str]:
        return await self._run(lambda: list(self._index()))

    async def match(self, key: str) -> CachedResponse | None:
        def _match() -> Any:
            for name in list(self._index()):
                value = self._cache_for(name).get(key)
                if value is not None:
                    return value
            return None

        return _load(await self._run(_match))

    def _close(self) -> None:
        with self._lock:
            for cache in self._caches.values():
                cache.close()
            self._caches.clear()
            if self._index_cache is not None:
                self._index_cache.close()
            self._index_cache = None
            self._names = None

    async def close(self) -> None:
        await asyncio.to_thread(self._close)
