"""Custom exception hierarchy for pyflkrd."""

from __future__ import annotations


class FlkrdError(Exception):
    """Base exception for all pyflkrd errors."""


class FlkrdConfigError(FlkrdError):
    """Invalid or missing configuration."""


class NetworkError(FlkrdError):
    """A fetch was rejected or timed out before a response arrived."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class InstallError(FlkrdError):
    """Static store population failed; the worker stays uninstalled."""

    def __init__(self, message: str, *, failed_url: str = "") -> None:
        self.failed_url = failed_url
        super().__init__(message)


class LifecycleError(FlkrdError):
    """Lifecycle event is not valid in the worker's current state."""


class CacheStoreError(FlkrdError):
    """A cache store could not be opened, read, written or deleted."""

    def __init__(self, message: str, *, store: str = "") -> None:
        self.store = store
        super().__init__(message)


class QueueError(FlkrdError):
    """The pending-change queue could not be read or updated."""
