"""Version-stamped cache stores owned by one worker."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import CacheStoreError
from pyflkrd.models.request import FetchRequest
from pyflkrd.models.response import CachedResponse
from pyflkrd.storage.base import CacheStorage

_logger = logging.getLogger(__name__)


class CacheManager:
    """Holds the static and dynamic store names and the storage behind them.

    Constructed once per worker and handed to the fetch strategies.  Writes
    made while serving requests run as background tasks: the response is
    returned without waiting for them, and a failed write is logged and
    dropped.  :meth:`flush` waits for outstanding writes.
    """

    def __init__(self, config: OfflineConfig, storage: CacheStorage) -> None:
        self._config = config
        self._storage = storage
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def static_name(self) -> str:
        return self._config.static_cache_name

    @property
    def dynamic_name(self) -> str:
        return self._config.dynamic_cache_name

    @property
    def legacy_name(self) -> str:
        """Combined store from the first release; removed on activation."""
        return self._config.legacy_cache_name

    @property
    def storage(self) -> CacheStorage:
        return self._storage

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def match(self, request: FetchRequest) -> CachedResponse | None:
        """Look *request* up across every store, oldest store first."""
        if not request.is_cacheable:
            return None
        return await self._storage.match(request.cache_key)

    async def populate_static(self, entries: Sequence[tuple[FetchRequest, CachedResponse]]) -> None:
        """Write the install manifest into the static store in one step."""
        store = await self._storage.open(self.static_name)
        await store.put_all([(request.cache_key, response) for request, response in entries])
        _logger.debug("Pre-cached %d assets into %s", len(entries), self.static_name)

    def put_in_background(self, request: FetchRequest, response: CachedResponse) -> asyncio.Task[None] | None:
        """Schedule a write of *response* into the dynamic store and return immediately."""
        if not request.is_cacheable:
            _logger.debug("Not caching %s %s: method is not cacheable", request.method, request.url)
            return None
        task = asyncio.get_running_loop().create_task(self._put_dynamic(request.cache_key, response.clone()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _put_dynamic(self, key: str, response: CachedResponse) -> None:
        try:
            store = await self._storage.open(self.dynamic_name)
            await store.put(key, response)
        except CacheStoreError:
            _logger.warning("Background cache write for %s failed", key, exc_info=True)
            return
        _logger.debug("Cached %s in %s", key, self.dynamic_name)

    async def flush(self) -> None:
        """Wait until every scheduled background write has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def prune(self) -> list[str]:
        """Delete every store that is not the current static or dynamic store.

        Store failures are logged and skipped; returns the names actually
        deleted.
        """
        keep = {self.static_name, self.dynamic_name}
        try:
            names = await self._storage.keys()
        except CacheStoreError:
            _logger.warning("Could not list cache stores; skipping cleanup", exc_info=True)
            return []

        deleted: list[str] = []
        for name in names:
            if name in keep:
                continue
            try:
                removed = await self._storage.delete(name)
            except CacheStoreError:
                _logger.warning("Failed to delete stale cache store %s", name, exc_info=True)
                continue
            if removed:
                if name == self.legacy_name:
                    _logger.info("Deleted legacy combined cache store %s", name)
                else:
                    _logger.info("Deleted stale cache store %s", name)
                deleted.append(name)
        return deleted

    async def clear(self) -> bool:
        """Delete every store. Returns ``False`` if any deletion failed."""
        await self.flush()
        all_deleted = True
        for name in await self._storage.keys():
            try:
                await self._storage.delete(name)
            except CacheStoreError:
                _logger.warning("Failed to delete cache store %s", name, exc_info=True)
                all_deleted = False
        return all_deleted

    async def usage_bytes(self) -> int:
        """Total body bytes held across every store."""
        total = 0
        for name in await self._storage.keys():
            store = await self._storage.open(name)
            total += await store.size_bytes()
        return total
