"""In-memory cache storage."""

from __future__ import annotations

from collections.abc import Sequence

from pyflkrd.exceptions import CacheStoreError
from pyflkrd.models.response import CachedResponse


class MemoryCacheStore:
    """Dict-backed store; lives as long as its storage."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._entries: dict[str, CachedResponse] = {}
        self._deleted = False

    @property
    def name(self) -> str:
        return self._name

    def _check_alive(self) -> None:
        if self._deleted:
            raise CacheStoreError(f"Cache store {self._name!r} was deleted", store=self._name)

    async def match(self, key: str) -> CachedResponse | None:
        cached = self._entries.get(key)
        return cached.clone() if cached is not None else None

    async def put(self, key: str, response: CachedResponse) -> None:
        self._check_alive()
        self._entries[key] = response.clone()

    async def put_all(self, entries: Sequence[tuple[str, CachedResponse]]) -> None:
        self._check_alive()
        self._entries.update({key: response.clone() for key, response in entries})

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return list(self._entries)

    async def size_bytes(self) -> int:
        return sum(len(r.body) for r in self._entries.values())

    def _detach(self) -> None:
        self._deleted = True
        self._entries.clear()


class MemoryCacheStorage:
    """Named stores held in process memory."""

    def __init__(self) -> None:
        self._stores: dict[str, MemoryCacheStore] = {}

    async def open(self, name: str) -> MemoryCacheStore:
        store = self._stores.get(name)
        if store is None:
            store = MemoryCacheStore(name)
            self._stores[name] = store
        return store

    async def has(self, name: str) -> bool:
        return name in self._stores

    async def delete(self, name: str) -> bool:
        store = self._stores.pop(name, None)
        if store is None:
            return False
        store._detach()  # noqa: SLF001
        return True

    async def keys(self) -> list[str]:
        return list(self._stores)

    async def match(self, key: str) -> CachedResponse | None:
        for store in list(self._stores.values()):
            cached = await store.match(key)
            if cached is not None:
                return cached
        return None

    async def close(self) -> None:
        return None
