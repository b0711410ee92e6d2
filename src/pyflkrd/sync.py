"""Background replay of queued watchlist changes."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pyflkrd._redact import describe_change
from pyflkrd._transport import Transport
from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import NetworkError, QueueError
from pyflkrd.models.pending import PendingChange
from pyflkrd.models.request import FetchRequest
from pyflkrd.queue import PendingChangeQueue

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncResult:
    """Outcome of one sync trigger."""

    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: bool = False
    queue_error: bool = False

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)

    @property
    def clean(self) -> bool:
        return not self.failed and not self.queue_error


class SyncBackoff:
    """Exponential hold-off between sync attempts after failed drains.

    After the n-th consecutive failed drain, triggers are refused for
    ``initial * 2**(n-1)`` seconds, capped at ``maximum``.
    """

    def __init__(
        self,
        initial: float,
        maximum: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._initial = initial
        self._maximum = maximum
        self._clock = clock
        self._failures = 0
        self._not_before: float | None = None

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def delay(self) -> float:
        if self._failures == 0:
            return 0.0
        return min(self._initial * (2 ** (self._failures - 1)), self._maximum)

    def ready(self) -> bool:
        return self._not_before is None or self._clock() >= self._not_before

    def record_failure(self) -> float:
        self._failures += 1
        delay = self.delay
        self._not_before = self._clock() + delay
        return delay

    def reset(self) -> None:
        self._failures = 0
        self._not_before = None


class WatchlistSync:
    """Drains the pending-change queue against the write endpoint.

    Changes are replayed one at a time in insertion order.  A change is
    removed once its replay returns a response; a change whose replay
    raises stays queued for the next trigger and does not stop the rest
    of the drain.
    """

    def __init__(
        self,
        config: OfflineConfig,
        queue: PendingChangeQueue,
        transport: Transport,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._queue = queue
        self._transport = transport
        self._backoff = SyncBackoff(config.sync_backoff_initial, config.sync_backoff_max, clock=clock)
        self._lock = asyncio.Lock()

    @property
    def backoff(self) -> SyncBackoff:
        return self._backoff

    def _build_request(self, change: PendingChange) -> FetchRequest:
        return FetchRequest.resolve(
            self._config.origin,
            self._config.sync_endpoint,
            method=change.method,
            headers={"Content-Type": "application/json"},
            body=json.dumps(change.data).encode("utf-8"),
        )

    async def drain(self, *, force: bool = False) -> SyncResult:
        """Replay every queued change.

        Parameters
        ----------
        force
            Ignore the backoff window (used when the caller knows the
            network just came back).
        """
        if not force and not self._backoff.ready():
            _logger.debug("Sync skipped: backing off after %d failed drains", self._backoff.failures)
            return SyncResult(skipped=True)

        async with self._lock:
            result = await self._drain_locked()

        if result.clean:
            self._backoff.reset()
        else:
            delay = self._backoff.record_failure()
            _logger.info("Sync left %d change(s) queued; next attempt in %.1fs", len(result.failed), delay)
        return result

    async def _drain_locked(self) -> SyncResult:
        result = SyncResult()
        try:
            changes = await self._queue.pending()
        except QueueError:
            _logger.error("Background sync failed: could not read pending changes", exc_info=True)
            result.queue_error = True
            return result

        for change in changes:
            _logger.debug("Replaying %s", describe_change(change))
            try:
                await self._transport.fetch(self._build_request(change))
            except NetworkError:
                _logger.warning("Failed to sync change %s", change.id, exc_info=True)
                result.failed.append(change.id)
                continue
            except Exception:
                # A change the transport cannot send stays queued; later changes still go out.
                _logger.exception("Change %s could not be replayed", change.id)
                result.failed.append(change.id)
                continue

            try:
                await self._queue.remove(change.id)
            except QueueError:
                # Delivered but still queued; it will be replayed again.
                _logger.warning("Synced change %s could not be removed from the queue", change.id, exc_info=True)
                result.queue_error = True
            result.delivered.append(change.id)

        return result
