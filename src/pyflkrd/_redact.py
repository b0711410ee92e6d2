"""Log-safe summaries of requests, responses and queued changes.

Intercepted requests carry session cookies and bearer tokens, and queued
watchlist changes carry user payloads.  Nothing here is used for anything
but DEBUG/INFO log arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pyflkrd.models.pending import PendingChange
from pyflkrd.models.response import CachedResponse

REDACTED = "<redacted>"

_SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {"authorization", "proxy-authorization", "cookie", "set-cookie", "x-api-key"}
)

# Payload fields, compared after lowercasing and dropping "_" and "-".
_SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {"password", "token", "accesstoken", "refreshtoken", "idtoken", "apikey", "secret", "session", "sessionid"}
)


def _header_items(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> Iterable[tuple[str, str]]:
    if isinstance(headers, Mapping):
        # multidict proxies yield every (name, value) pair from items()
        return headers.items()
    return headers


def redact_headers(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> list[str]:
    """Render headers as ``"Name: value"`` lines with credentials masked."""
    return [
        f"{name}: {REDACTED if name.lower() in _SENSITIVE_HEADERS else value}"
        for name, value in _header_items(headers)
    ]


def _is_sensitive_field(key: str) -> bool:
    return key.lower().replace("_", "").replace("-", "") in _SENSITIVE_FIELDS


def redact_payload(data: Any, *, max_string: int = 120) -> Any:
    """Mask credential fields in a JSON-shaped payload and clip long strings."""
    if isinstance(data, Mapping):
        return {
            key: REDACTED if _is_sensitive_field(str(key)) else redact_payload(value, max_string=max_string)
            for key, value in data.items()
        }
    if isinstance(data, list | tuple):
        return [redact_payload(item, max_string=max_string) for item in data]
    if isinstance(data, str) and len(data) > max_string:
        return f"{data[:max_string]}...<{len(data) - max_string} more>"
    return data


def describe_change(change: PendingChange) -> str:
    return f"{change.method} {change.id} data={redact_payload(change.data)}"


def describe_response(response: CachedResponse) -> str:
    return f"{response.status} {response.type} {len(response.body)}b"
