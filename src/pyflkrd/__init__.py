"""pyflkrd - Async offline cache worker for the FLKRD Movies app."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyflkrd")
except PackageNotFoundError:
    __version__ = "0+local"

from pyflkrd._constants import IN_MEMORY
from pyflkrd.cache_manager import CacheManager
from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import (
    CacheStoreError,
    FlkrdConfigError,
    FlkrdError,
    InstallError,
    LifecycleError,
    NetworkError,
    QueueError,
)
from pyflkrd.host import Host, LoggingHost
from pyflkrd.lifecycle import WorkerState
from pyflkrd.models import (
    CachedResponse,
    FetchRequest,
    Notification,
    NotificationAction,
    PendingChange,
)
from pyflkrd.queue import PendingChangeQueue
from pyflkrd.storage import DiskCacheStorage, MemoryCacheStorage
from pyflkrd.strategies import Strategy
from pyflkrd.sync import SyncResult
from pyflkrd.worker import OfflineWorker

__all__ = [
    "__version__",
    "CacheManager",
    "CacheStoreError",
    "CachedResponse",
    "DiskCacheStorage",
    "FetchRequest",
    "FlkrdConfigError",
    "FlkrdError",
    "IN_MEMORY",
    "Host",
    "InstallError",
    "LifecycleError",
    "LoggingHost",
    "MemoryCacheStorage",
    "NetworkError",
    "Notification",
    "NotificationAction",
    "OfflineConfig",
    "OfflineWorker",
    "PendingChange",
    "PendingChangeQueue",
    "QueueError",
    "Strategy",
    "SyncResult",
    "WorkerState",
]
