from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pyflkrd.models.notification import Notification
from pyflkrd.notifications import build_notification, handle_click


@dataclass
class RecordingHost:
    opened: list[str] = field(default_factory=list)
    closed: int = 0
    shown: list[Notification] = field(default_factory=list)
    claimed: int = 0

    async def claim_clients(self) -> None:
        self.claimed += 1

    async def show_notification(self, notification: Notification) -> None:
        self.shown.append(notification)

    async def close_notification(self, notification: Notification | None) -> None:
        self.closed += 1

    async def open_window(self, url: str) -> None:
        self.opened.append(url)


def test_notification_defaults_when_payload_missing() -> None:
    notification = build_notification(None, title="FLKRD Movies", now_ms=1_760_000_000_000)

    assert notification.title == "FLKRD Movies"
    assert notification.body == "New content available!"
    assert notification.icon == "/icons/icon-192x192.png"
    assert notification.badge == "/icons/icon-72x72.png"
    assert notification.vibrate == [100, 50, 100]
    assert notification.data == {"dateOfArrival": 1_760_000_000_000, "primaryKey": 1}
    assert notification.action_names == ["explore", "close"]
    assert notification.actions[0].icon == "/icons/explore-icon.png"


def test_notification_uses_payload_text() -> None:
    assert build_notification("New episode of Dune", title="t").body == "New episode of Dune"
    assert build_notification("Nû".encode(), title="t").body == "Nû"


def test_notification_stamps_arrival_time() -> None:
    notification = build_notification(None, title="t")

    assert notification.data["dateOfArrival"] > 1_600_000_000_000


@pytest.mark.asyncio
async def test_explore_click_opens_root() -> None:
    host = RecordingHost()

    assert await handle_click(host, "explore") is True
    assert host.opened == ["/"]
    assert host.closed == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["close", "", None])
async def test_other_clicks_only_dismiss(action: str | None) -> None:
    host = RecordingHost()

    assert await handle_click(host, action) is False
    assert host.opened == []
    assert host.closed == 1
