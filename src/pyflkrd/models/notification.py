"""Notification models built from push payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationAction(BaseModel):
    """A button shown on a notification."""

    model_config = ConfigDict(frozen=True)

    action: str
    title: str
    icon: str | None = None


class Notification(BaseModel):
    """Notification handed to the host for display."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    icon: str | None = None
    badge: str | None = None
    vibrate: list[int] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
    actions: list[NotificationAction] = Field(default_factory=list)

    @property
    def action_names(self) -> list[str]:
        return [a.action for a in self.actions]
