"""High-level offline worker for the FLKRD Movies app."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pyflkrd import strategies
from pyflkrd._constants import IN_MEMORY, SKIP_WAITING_MESSAGE
from pyflkrd._transport import HttpTransport, Transport
from pyflkrd.cache_manager import CacheManager
from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import CacheStoreError, FlkrdError, InstallError, LifecycleError, NetworkError
from pyflkrd.host import Host, LoggingHost
from pyflkrd.lifecycle import Lifecycle, WorkerState
from pyflkrd.models.notification import Notification
from pyflkrd.models.pending import PendingChange
from pyflkrd.models.request import FetchRequest
from pyflkrd.models.response import CachedResponse
from pyflkrd.notifications import build_notification, handle_click
from pyflkrd.queue import PendingChangeQueue
from pyflkrd.storage import DiskCacheStorage, MemoryCacheStorage
from pyflkrd.storage.base import CacheStorage
from pyflkrd.sync import SyncResult, WatchlistSync

_logger = logging.getLogger(__name__)


class OfflineWorker:
    """Async offline cache orchestrator.

    Usage::

        async with OfflineWorker(config) as worker:
            await worker.register()
            response = await worker.handle_fetch("/api/trending")
    """

    def __init__(
        self,
        config: OfflineConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        storage: CacheStorage | None = None,
        queue: PendingChangeQueue | None = None,
        host: Host | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._owns_storage = storage is None
        if storage is None:
            storage = MemoryCacheStorage() if config.cache_path == IN_MEMORY else DiskCacheStorage(config.cache_path)
        self._owns_queue = queue is None
        self._queue = queue if queue is not None else PendingChangeQueue(config.queue_path)
        self._cache = CacheManager(config, storage)
        self._host: Host = host if host is not None else LoggingHost()
        self._clock = clock
        self._lifecycle = Lifecycle()
        self._sync: WatchlistSync | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> OfflineWorker:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._cache.flush()
        if self._owns_storage:
            await self._cache.storage.close()
        if self._owns_queue:
            await self._queue.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
            # The drain holds the closed transport; rebuild it on the next entry.
            self._sync = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise FlkrdError("Worker not initialized. Use 'async with OfflineWorker(...) as worker:'")
        return self._transport

    def _require_sync(self) -> WatchlistSync:
        if self._sync is None:
            self._sync = WatchlistSync(self._config, self._queue, self._require_transport(), clock=self._clock)
        return self._sync

    def _to_request(self, request: FetchRequest | str) -> FetchRequest:
        if isinstance(request, FetchRequest):
            return request
        return FetchRequest.resolve(self._config.origin, request)

    @property
    def config(self) -> OfflineConfig:
        return self._config

    @property
    def state(self) -> WorkerState:
        return self._lifecycle.state

    @property
    def cache(self) -> CacheManager:
        return self._cache

    @property
    def queue(self) -> PendingChangeQueue:
        return self._queue

    # ------------------------------------------------------------------
    # Install / activate
    # ------------------------------------------------------------------

    async def install(self) -> None:
        """Fetch the app shell into the static store.

        All-or-nothing: if any asset fails to fetch or comes back with a
        non-ok status nothing is stored, the worker returns to
        ``uninstalled`` and :class:`InstallError` is raised.
        """
        transport = self._require_transport()
        self._lifecycle.transition(WorkerState.INSTALLING)
        requests = [FetchRequest.resolve(self._config.origin, url) for url in self._config.precache_urls]
        _logger.debug("Installing %d app-shell assets", len(requests))

        try:
            results = await asyncio.gather(*(transport.fetch(r) for r in requests), return_exceptions=True)
            entries: list[tuple[FetchRequest, CachedResponse]] = []
            for request, result in zip(requests, results, strict=True):
                if isinstance(result, NetworkError):
                    raise InstallError(f"Failed to fetch {request.url}: {result}", failed_url=request.url) from result
                if isinstance(result, BaseException):
                    raise result
                if not result.ok:
                    raise InstallError(
                        f"Failed to fetch {request.url}: HTTP {result.status}",
                        failed_url=request.url,
                    )
                entries.append((request, result))

            try:
                await self._cache.populate_static(entries)
            except CacheStoreError as exc:
                raise InstallError(f"Could not write {self._cache.static_name}: {exc}") from exc
        except BaseException:
            self._lifecycle.transition(WorkerState.UNINSTALLED)
            raise

        self._lifecycle.transition(WorkerState.INSTALLED)
        _logger.info("Installed worker %s", self._config.cache_version)

    async def activate(self) -> list[str]:
        """Delete stores from other versions and take control of open pages.

        Returns the names of the deleted stores.
        """
        if self.state is not WorkerState.INSTALLED:
            raise LifecycleError(f"Cannot activate worker in state {self.state}")
        deleted = await self._cache.prune()
        self._lifecycle.transition(WorkerState.ACTIVE)
        await self._host.claim_clients()
        _logger.info("Activated worker %s (removed %d stale stores)", self._config.cache_version, len(deleted))
        return deleted

    async def register(self) -> WorkerState:
        """Install, then activate right away unless ``skip_waiting`` is off."""
        await self.install()
        if self._config.skip_waiting:
            await self.activate()
        return self.state

    async def handle_message(self, message: Mapping[str, Any]) -> bool:
        """Handle a page message. ``SKIP_WAITING`` activates a waiting worker."""
        if message.get("type") != SKIP_WAITING_MESSAGE:
            _logger.debug("Ignoring message %r", message.get("type"))
            return False
        if self.state is not WorkerState.INSTALLED:
            _logger.debug("SKIP_WAITING ignored in state %s", self.state)
            return False
        await self.activate()
        return True

    # ------------------------------------------------------------------
    # Fetch interception
    # ------------------------------------------------------------------

    async def handle_fetch(self, request: FetchRequest | str) -> CachedResponse:
        """Serve *request* through its caching strategy.

        Until the worker is active requests go straight to the network.

        Raises
        ------
        NetworkError
            The network is unreachable and the strategy has no cached
            fallback for the request.
        """
        transport = self._require_transport()
        req = self._to_request(request)
        if not self._lifecycle.is_active:
            return await transport.fetch(req)
        return await strategies.respond(self._config, req, transport, self._cache)

    async def flush(self) -> None:
        """Wait for background cache writes to settle."""
        await self._cache.flush()

    # ------------------------------------------------------------------
    # Background sync
    # ------------------------------------------------------------------

    async def enqueue_change(self, method: str, data: Any = None) -> PendingChange:
        """Record an offline mutation for the next sync."""
        return await self._queue.enqueue(method, data)

    async def handle_sync(self, tag: str, *, force: bool = False) -> SyncResult | None:
        """Drain the pending-change queue when *tag* is the watchlist sync tag.

        Returns ``None`` for unrecognized tags.
        """
        if tag != self._config.sync_tag:
            _logger.debug("Ignoring sync tag %r", tag)
            return None
        return await self._require_sync().drain(force=force)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def handle_push(self, payload: bytes | str | None = None) -> Notification:
        """Show a notification for a push message."""
        notification = build_notification(payload, title=self._config.notification_title)
        await self._host.show_notification(notification)
        return notification

    async def handle_notification_click(self, action: str | None, notification: Notification | None = None) -> bool:
        """Close the notification; ``explore`` also opens the app root."""
        return await handle_click(self._host, action, notification)

    # ------------------------------------------------------------------
    # Cache maintenance
    # ------------------------------------------------------------------

    async def clear_caches(self) -> bool:
        """Delete every cache store."""
        return await self._cache.clear()

    async def cache_usage(self) -> int:
        """Bytes held across every cache store."""
        return await self._cache.usage_bytes()
