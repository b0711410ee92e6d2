"""Per-request caching strategies.

Every intercepted request is routed to exactly one strategy, first match
wins:

1. API paths go network-first so stats and reviews stay fresh.
2. TMDB images go cache-first; published artwork never changes.
3. Everything else goes cache-first, caching only same-origin 200s.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from pyflkrd._transport import Transport
from pyflkrd.cache_manager import CacheManager
from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import CacheStoreError, NetworkError
from pyflkrd.models.request import FetchRequest
from pyflkrd.models.response import CachedResponse

_logger = logging.getLogger(__name__)


class Strategy(StrEnum):
    NETWORK_FIRST = "network-first"
    IMAGE_CACHE_FIRST = "image-cache-first"
    CACHE_FIRST = "cache-first"


def classify(config: OfflineConfig, request: FetchRequest) -> Strategy:
    """Pick the strategy for *request* from its URL shape."""
    if request.path.startswith(config.api_prefix):
        return Strategy.NETWORK_FIRST
    if request.hostname == config.image_host:
        return Strategy.IMAGE_CACHE_FIRST
    return Strategy.CACHE_FIRST


async def _lookup(cache: CacheManager, request: FetchRequest) -> CachedResponse | None:
    """Cache lookup that treats a store failure as a miss."""
    try:
        return await cache.match(request)
    except CacheStoreError:
        _logger.warning("Cache lookup for %s failed; treating as a miss", request.url, exc_info=True)
        return None


async def network_first(request: FetchRequest, transport: Transport, cache: CacheManager) -> CachedResponse:
    """Prefer the network; fall back to any cached copy when it is unreachable."""
    try:
        response = await transport.fetch(request)
    except NetworkError as exc:
        cached = await _lookup(cache, request)
        if cached is None:
            raise NetworkError(
                f"{request.url} is unreachable and has no cached copy",
                url=request.url,
            ) from exc
        _logger.debug("Network failed for %s; serving cached copy", request.url)
        return cached

    if response.status == 200:
        cache.put_in_background(request, response)
    return response


async def image_cache_first(request: FetchRequest, transport: Transport, cache: CacheManager) -> CachedResponse:
    """Serve cached artwork without revalidation; fetch and store on a miss."""
    cached = await _lookup(cache, request)
    if cached is not None:
        return cached

    response = await transport.fetch(request)
    if response.status == 200:
        cache.put_in_background(request, response)
    return response


async def cache_first(request: FetchRequest, transport: Transport, cache: CacheManager) -> CachedResponse:
    """Serve from cache; on a miss fetch and store only same-origin 200s.

    Cross-origin responses pass through uncached so the store never holds
    bytes whose status could not be checked.
    """
    cached = await _lookup(cache, request)
    if cached is not None:
        return cached

    response = await transport.fetch(request)
    if response.status != 200 or response.type != "basic":
        return response
    cache.put_in_background(request, response)
    return response


_HANDLERS: dict[Strategy, Callable[[FetchRequest, Transport, CacheManager], Awaitable[CachedResponse]]] = {
    Strategy.NETWORK_FIRST: network_first,
    Strategy.IMAGE_CACHE_FIRST: image_cache_first,
    Strategy.CACHE_FIRST: cache_first,
}


async def respond(
    config: OfflineConfig,
    request: FetchRequest,
    transport: Transport,
    cache: CacheManager,
) -> CachedResponse:
    """Route *request* through its strategy and return the response to serve."""
    strategy = classify(config, request)
    _logger.debug("%s %s -> %s", request.method, request.url, strategy)
    return await _HANDLERS[strategy](request, transport, cache)
