"""Push payload to notification mapping and click handling."""

from __future__ import annotations

import logging
import time

from pyflkrd._constants import (
    CLOSE_ACTION,
    CLOSE_ICON,
    DEFAULT_PUSH_BODY,
    EXPLORE_ACTION,
    EXPLORE_ICON,
    NOTIFICATION_BADGE,
    NOTIFICATION_ICON,
    ROOT_URL,
    VIBRATE_PATTERN,
)
from pyflkrd.host import Host
from pyflkrd.models.notification import Notification, NotificationAction

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def push_body(payload: bytes | str | None) -> str:
    """Text of a push payload, or the default body when there is none."""
    if payload is None:
        return DEFAULT_PUSH_BODY
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload


def build_notification(payload: bytes | str | None, *, title: str, now_ms: int | None = None) -> Notification:
    """Build the notification shown for a push message."""
    return Notification(
        title=title,
        body=push_body(payload),
        icon=NOTIFICATION_ICON,
        badge=NOTIFICATION_BADGE,
        vibrate=list(VIBRATE_PATTERN),
        data={
            "dateOfArrival": now_ms if now_ms is not None else _now_ms(),
            "primaryKey": 1,
        },
        actions=[
            NotificationAction(action=EXPLORE_ACTION, title="Explore", icon=EXPLORE_ICON),
            NotificationAction(action=CLOSE_ACTION, title="Close", icon=CLOSE_ICON),
        ],
    )


async def handle_click(host: Host, action: str | None, notification: Notification | None = None) -> bool:
    """Close the clicked notification; open the app root on ``explore``.

    Returns whether a window was opened.
    """
    await host.close_notification(notification)
    if action == EXPLORE_ACTION:
        await host.open_window(ROOT_URL)
        return True
    _logger.debug("Notification dismissed (action=%r)", action)
    return False
