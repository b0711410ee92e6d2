"""Data models exchanged with the offline worker."""

from pyflkrd.models.notification import Notification, NotificationAction
from pyflkrd.models.pending import PendingChange
from pyflkrd.models.request import FetchRequest, RequestMode
from pyflkrd.models.response import CachedResponse, ResponseType

__all__ = [
    "CachedResponse",
    "FetchRequest",
    "Notification",
    "NotificationAction",
    "PendingChange",
    "RequestMode",
    "ResponseType",
]
