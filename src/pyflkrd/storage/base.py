"""Structural interfaces for cache stores."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from pyflkrd.models.response import CachedResponse


class CacheStore(Protocol):
    """A single named store of responses keyed by request URL.

    Every operation is atomic for a single key.  Writing to a store whose
    name was deleted from its storage raises :class:`CacheStoreError`.
    """

    @property
    def name(self) -> str:
        ...

    async def match(self, key: str) -> CachedResponse | None:
        ...

    async def put(self, key: str, response: CachedResponse) -> None:
        ...

    async def put_all(self, entries: Sequence[tuple[str, CachedResponse]]) -> None:
        """Write every entry or none of them."""
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def keys(self) -> list[str]:
        ...

    async def size_bytes(self) -> int:
        """Total body bytes held by the store."""
        ...


class CacheStorage(Protocol):
    """The set of named stores visible to the worker."""

    async def open(self, name: str) -> CacheStore:
        """Return the store called *name*, creating it if missing."""
        ...

    async def has(self, name: str) -> bool:
        ...

    async def delete(self, name: str) -> bool:
        """Delete a store and its entries. Returns ``False`` if it did not exist."""
        ...

    async def keys(self) -> list[str]:
        """Store names in creation order."""
        ...

    async def match(self, key: str) -> CachedResponse | None:
        """First hit for *key* across all stores, in creation order."""
        ...

    async def close(self) -> None:
        ...
