"""Worker configuration for pyflkrd."""

from __future__ import annotations

import dataclasses
import os
import platform
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pyflkrd._constants import (
    API_PREFIX,
    DEFAULT_CACHE_VERSION,
    DEFAULT_ORIGIN,
    IMAGE_HOST,
    NOTIFICATION_TITLE,
    STATIC_ASSETS,
    SYNC_ENDPOINT,
    SYNC_TAG,
)
from pyflkrd.exceptions import FlkrdConfigError

_APP_NAME = "pyflkrd"


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def default_cache_dir() -> Path:
    """Directory for the cache stores.

    ``$XDG_CACHE_HOME/pyflkrd/stores`` on Linux/BSD (default
    ``~/.cache/pyflkrd/stores``), ``~/.pyflkrd/cache/stores`` elsewhere.
    Not created here.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME / "stores"
    return Path.home() / f".{_APP_NAME}" / "cache" / "stores"


def default_queue_dir() -> Path:
    """Directory for the pending-change queue.

    ``$XDG_DATA_HOME/pyflkrd/queue`` on Linux/BSD (default
    ``~/.local/share/pyflkrd/queue``), ``~/.pyflkrd/data/queue`` elsewhere.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME / "queue"
    return Path.home() / f".{_APP_NAME}" / "data" / "queue"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class OfflineConfig:
    """Offline worker configuration.

    Parameters
    ----------
    origin : str
        Scheme and host the worker is registered for (e.g.
        ``"https://flkrd.example"``).  Relative URLs resolve against it and
        responses from it are classified as ``basic``.
    cache_version : str
        Version stamp appended to every cache store name.  Bump it on any
        change to the manifest or the caching strategies so activation
        garbage-collects the previous stores.
    api_prefix : str
        Path prefix routed through the network-first strategy.
    image_host : str
        Hostname routed through the image cache-first strategy.
    precache_urls : tuple[str, ...]
        App-shell assets fetched into the static store at install.
    sync_tag : str
        Background sync tag that drains the pending-change queue.
    sync_endpoint : str
        Endpoint pending changes are replayed against.
    cache_path : str
        Directory holding the cache stores (see :func:`default_cache_dir`).
        ``":memory:"`` keeps the stores in process memory instead.
    queue_path : str
        Directory holding the pending-change queue (see
        :func:`default_queue_dir`).  ``":memory:"`` keeps it in memory.
    request_timeout : float
        Total timeout in seconds for a single network fetch.
    skip_waiting : bool
        Activate immediately after a successful install instead of waiting
        for a ``SKIP_WAITING`` message.
    sync_backoff_initial : float
        Seconds to hold off sync after the first failed drain.
    sync_backoff_max : float
        Upper bound for the sync backoff delay.
    notification_title : str
        Title used for push notifications.
    """

    origin: str = DEFAULT_ORIGIN
    cache_version: str = DEFAULT_CACHE_VERSION
    api_prefix: str = API_PREFIX
    image_host: str = IMAGE_HOST
    precache_urls: tuple[str, ...] = STATIC_ASSETS
    sync_tag: str = SYNC_TAG
    sync_endpoint: str = SYNC_ENDPOINT
    cache_path: str = dataclasses.field(default_factory=lambda: str(default_cache_dir()))
    queue_path: str = dataclasses.field(default_factory=lambda: str(default_queue_dir()))
    request_timeout: float = 30.0
    skip_waiting: bool = True
    sync_backoff_initial: float = 1.0
    sync_backoff_max: float = 300.0
    notification_title: str = NOTIFICATION_TITLE

    def __post_init__(self) -> None:
        parts = urlsplit(self.origin)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise FlkrdConfigError(f"origin must be an absolute http(s) URL, got {self.origin!r}")
        if parts.path not in {"", "/"} or parts.query or parts.fragment:
            raise FlkrdConfigError(f"origin must not carry a path, query or fragment: {self.origin!r}")
        if not self.precache_urls:
            raise FlkrdConfigError("precache_urls must list at least one asset")
        if not self.cache_version.strip():
            raise FlkrdConfigError("cache_version must be non-empty")
        if not self.cache_path or not self.queue_path:
            raise FlkrdConfigError("cache_path and queue_path must be non-empty")
        if self.request_timeout <= 0:
            raise FlkrdConfigError("request_timeout must be positive")
        if self.sync_backoff_initial < 0 or self.sync_backoff_max < self.sync_backoff_initial:
            raise FlkrdConfigError("sync backoff must satisfy 0 <= initial <= max")
        # Normalise the origin once so URL comparisons stay exact.
        object.__setattr__(self, "origin", f"{parts.scheme}://{parts.netloc}".lower())

    @property
    def static_cache_name(self) -> str:
        return f"flkrd-static-{self.cache_version}"

    @property
    def dynamic_cache_name(self) -> str:
        return f"flkrd-dynamic-{self.cache_version}"

    @property
    def legacy_cache_name(self) -> str:
        """Combined store name used by the first worker release."""
        return f"flkrd-movies-{self.cache_version}"

    @classmethod
    def from_env(cls, **overrides: Any) -> OfflineConfig:
        """Create configuration from environment variables.

        Reads optional ``FLKRD_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        OfflineConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FLKRD_ORIGIN": "origin",
            "FLKRD_CACHE_VERSION": "cache_version",
            "FLKRD_API_PREFIX": "api_prefix",
            "FLKRD_IMAGE_HOST": "image_host",
            "FLKRD_SYNC_TAG": "sync_tag",
            "FLKRD_SYNC_ENDPOINT": "sync_endpoint",
            "FLKRD_CACHE_PATH": "cache_path",
            "FLKRD_QUEUE_PATH": "queue_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric settings, handled separately
        _ENV_FLOAT_MAP = {
            "FLKRD_REQUEST_TIMEOUT": "request_timeout",
            "FLKRD_SYNC_BACKOFF_INITIAL": "sync_backoff_initial",
            "FLKRD_SYNC_BACKOFF_MAX": "sync_backoff_max",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise FlkrdConfigError(f"{env_key} must be a number, got {val!r}") from exc

        if "skip_waiting" not in overrides:
            config_kwargs["skip_waiting"] = _env_bool(env.get("FLKRD_SKIP_WAITING"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
