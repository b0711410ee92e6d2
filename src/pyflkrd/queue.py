"""Durable FIFO of offline mutations awaiting replay."""

from __future__ import annotations

import asyncio
import collections
import json
import logging
import sqlite3
import threading
from collections.abc import Callable, MutableSequence
from typing import Any, TypeVar

import diskcache
import pydantic

from pyflkrd._constants import IN_MEMORY
from pyflkrd.exceptions import QueueError
from pyflkrd.models.pending import PendingChange

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_DISK_ERRORS = (diskcache.Timeout, sqlite3.Error, OSError)


class PendingChangeQueue:
    """Pending-change queue backed by a :class:`diskcache.Deque`.

    Records come back in insertion order and leave the queue only through
    :meth:`remove`, which the sync drain calls once a replay went through.

    Parameters
    ----------
    path : str
        Directory holding the queue.  ``":memory:"`` keeps the records in a
        :class:`collections.deque` that lives as long as this object.
    """

    def __init__(self, path: str = IN_MEMORY) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._cache: diskcache.Cache | None = None
        self._records: MutableSequence[dict[str, Any]] | None = None

    @property
    def path(self) -> str:
        return self._path

    def _open(self) -> MutableSequence[dict[str, Any]]:
        if self._records is None:
            if self._path == IN_MEMORY:
                self._records = collections.deque()
            else:
                self._cache = diskcache.Cache(self._path)
                self._records = diskcache.Deque.fromcache(self._cache)
                _logger.debug("Opened pending-change queue %s", self._path)
        return self._records

    def _call(self, fn: Callable[[MutableSequence[dict[str, Any]]], T]) -> T:
        with self._lock:
            return fn(self._open())

    async def _run(self, fn: Callable[[MutableSequence[dict[str, Any]]], T]) -> T:
        try:
            return await asyncio.to_thread(self._call, fn)
        except _DISK_ERRORS as exc:
            raise QueueError(f"Pending-change queue at {self._path} failed: {exc}") from exc

    async def enqueue(self, method: str, data: Any = None, *, change_id: str | None = None) -> PendingChange:
        """Append a change and return the stored record."""
        kwargs: dict[str, Any] = {"method": method, "data": data}
        if change_id is not None:
            kwargs["id"] = change_id
        try:
            change = PendingChange(**kwargs)
        except pydantic.ValidationError as exc:
            raise QueueError(f"Invalid pending change: {exc}") from exc
        try:
            json.dumps(change.data)
        except (TypeError, ValueError) as exc:
            raise QueueError(f"Pending change {change.id} has a payload that is not JSON: {exc}") from exc

        def _append(records: MutableSequence[dict[str, Any]]) -> None:
            if any(record["id"] == change.id for record in records):
                raise QueueError(f"Pending change {change.id} is already queued")
            records.append(change.model_dump())

        await self._run(_append)
        _logger.debug("Queued %s change %s", change.method, change.id)
        return change

    async def pending(self) -> list[PendingChange]:
        """All queued changes, oldest first."""
        records = await self._run(list)
        return [PendingChange.model_validate(record) for record in records]

    async def remove(self, change_id: str) -> bool:
        def _remove(records: MutableSequence[dict[str, Any]]) -> bool:
            for record in records:
                if record["id"] == change_id:
                    records.remove(record)
                    return True
            return False

        return await self._run(_remove)

    async def count(self) -> int:
        return await self._run(len)

    def _close(self) -> None:
        with self._lock:
            if self._cache is not None:
                self._cache.close()
                self._cache = None
                self._records = None

    async def close(self) -> None:
        """Release the on-disk queue; it reopens on next use.

        An in-memory queue keeps its records.
        """
        await asyncio.to_thread(self._close)
