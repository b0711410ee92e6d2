"""Network transport used by the worker's fetch strategies."""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import urlsplit

import aiohttp

from pyflkrd._constants import USER_AGENT
from pyflkrd._redact import describe_response, redact_headers
from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import NetworkError
from pyflkrd.models.request import FetchRequest
from pyflkrd.models.response import CachedResponse, ResponseType

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by strategies and sync.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    Implementations raise :class:`NetworkError` when no response arrives;
    HTTP error statuses are returned, not raised.
    """

    async def fetch(self, request: FetchRequest) -> CachedResponse:
        ...


def _origin_of(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def classify_response_type(worker_origin: str, request: FetchRequest, final_url: str) -> ResponseType:
    """Classify a response the way the browser's fetch does."""
    if _origin_of(final_url) == worker_origin:
        return "basic"
    if request.mode == "no-cors":
        return "opaque"
    return "cors"


class HttpTransport:
    """aiohttp-backed transport that buffers response bodies."""

    def __init__(self, config: OfflineConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def fetch(self, request: FetchRequest) -> CachedResponse:
        headers = dict(request.headers)
        if not any(k.lower() == "user-agent" for k in headers):
            headers["User-Agent"] = USER_AGENT

        _logger.debug("%s %s headers=%s", request.method, request.url, redact_headers(headers))

        try:
            async with self._http.request(
                request.method,
                request.url,
                headers=headers,
                data=request.body,
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                final_url = str(resp.url)
                response = CachedResponse(
                    url=final_url,
                    status=resp.status,
                    status_text=resp.reason or "",
                    headers=list(resp.headers.items()),
                    body=body,
                    type=classify_response_type(self._config.origin, request, final_url),
                )
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Request to {request.url} failed: {exc}", url=request.url) from exc
        except TimeoutError as exc:
            raise NetworkError(f"Request to {request.url} timed out", url=request.url) from exc

        _logger.debug("%s %s -> %s", request.method, request.url, describe_response(response))
        return response
