"""Interface to the environment hosting the worker's pages."""

from __future__ import annotations

import logging
from typing import Protocol

from pyflkrd.models.notification import Notification

_logger = logging.getLogger(__name__)


class Host(Protocol):
    """Page-side operations the worker triggers but does not implement."""

    async def claim_clients(self) -> None:
        """Take control of already-open pages without a reload."""
        ...

    async def show_notification(self, notification: Notification) -> None:
        ...

    async def close_notification(self, notification: Notification | None) -> None:
        ...

    async def open_window(self, url: str) -> None:
        ...


class LoggingHost:
    """Default host for headless use: records requests in the log only."""

    async def claim_clients(self) -> None:
        _logger.info("Claiming open clients")

    async def show_notification(self, notification: Notification) -> None:
        _logger.info("Notification %r: %s", notification.title, notification.body)

    async def close_notification(self, notification: Notification | None) -> None:
        _logger.debug("Notification closed")

    async def open_window(self, url: str) -> None:
        _logger.info("Open window %s", url)
