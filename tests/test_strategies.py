from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pyflkrd.cache_manager import CacheManager
from pyflkrd.config import OfflineConfig
from pyflkrd.exceptions import CacheStoreError, NetworkError
from pyflkrd.models.request import FetchRequest
from pyflkrd.models.response import CachedResponse, ResponseType
from pyflkrd.storage.memory import MemoryCacheStorage
from pyflkrd.strategies import Strategy, classify, respond

ORIGIN = "https://flkrd.test"
IMAGE_URL = "https://image.tmdb.org/t/p/w500/poster.jpg"


def _response(url: str, status: int = 200, body: bytes = b"payload", type_: ResponseType = "basic") -> CachedResponse:
    return CachedResponse(url=url, status=status, body=body, type=type_)


@dataclass
class FakeNetwork:
    routes: dict[str, CachedResponse] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    offline: bool = False

    async def fetch(self, request: FetchRequest) -> CachedResponse:
        self.calls.append(request.url)
        if self.offline:
            raise NetworkError("offline", url=request.url)
        route = self.routes.get(request.url)
        if route is None:
            return _response(request.url, status=404, body=b"")
        return route


class _BrokenStorage(MemoryCacheStorage):
    async def open(self, name: str):  # type: ignore[override]
        raise CacheStoreError("disk full", store=name)

    async def match(self, key: str) -> CachedResponse | None:
        raise CacheStoreError("disk full")


def _setup(storage: MemoryCacheStorage | None = None) -> tuple[OfflineConfig, CacheManager, FakeNetwork]:
    config = OfflineConfig(origin=ORIGIN)
    return config, CacheManager(config, storage or MemoryCacheStorage()), FakeNetwork()


async def _dynamic_keys(cache: CacheManager) -> list[str]:
    await cache.flush()
    store = await cache.storage.open(cache.dynamic_name)
    return await store.keys()


def test_classify_first_match_wins() -> None:
    config = OfflineConfig(origin=ORIGIN)

    assert classify(config, FetchRequest(url=f"{ORIGIN}/api/trending")) is Strategy.NETWORK_FIRST
    # API prefix is checked before the image host.
    assert classify(config, FetchRequest(url="https://image.tmdb.org/api/x")) is Strategy.NETWORK_FIRST
    assert classify(config, FetchRequest(url=IMAGE_URL)) is Strategy.IMAGE_CACHE_FIRST
    assert classify(config, FetchRequest(url=f"{ORIGIN}/apiary")) is Strategy.CACHE_FIRST
    assert classify(config, FetchRequest(url="https://cdn.image.tmdb.org/x.jpg")) is Strategy.CACHE_FIRST


@pytest.mark.asyncio
async def test_api_200_is_echoed_and_cached_but_repeat_still_hits_network() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/api/watchlist"
    live = _response(url, body=b'{"items": []}')
    network.routes[url] = live

    first = await respond(config, FetchRequest(url=url), network, cache)
    assert first == live
    assert await _dynamic_keys(cache) == [url]

    await respond(config, FetchRequest(url=url), network, cache)
    assert network.calls == [url, url]


@pytest.mark.asyncio
async def test_api_non_200_is_returned_but_not_cached() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/api/reviews"
    network.routes[url] = _response(url, status=500, body=b"boom")

    response = await respond(config, FetchRequest(url=url), network, cache)

    assert response.status == 500
    assert await _dynamic_keys(cache) == []


@pytest.mark.asyncio
async def test_api_falls_back_to_cache_when_offline() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/api/user-stats"
    network.routes[url] = _response(url, body=b"stats-v1")
    await respond(config, FetchRequest(url=url), network, cache)
    await cache.flush()

    network.offline = True
    response = await respond(config, FetchRequest(url=url), network, cache)

    assert response.body == b"stats-v1"


@pytest.mark.asyncio
async def test_api_offline_without_cache_raises_network_error() -> None:
    config, cache, network = _setup()
    network.offline = True

    with pytest.raises(NetworkError) as exc_info:
        await respond(config, FetchRequest(url=f"{ORIGIN}/api/trending"), network, cache)

    assert exc_info.value.url == f"{ORIGIN}/api/trending"


@pytest.mark.asyncio
async def test_api_post_is_not_cached() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/api/reviews"
    network.routes[url] = _response(url)

    await respond(config, FetchRequest(url=url, method="POST", body=b"{}"), network, cache)

    assert await _dynamic_keys(cache) == []


@pytest.mark.asyncio
async def test_image_second_request_served_from_cache_without_network() -> None:
    config, cache, network = _setup()
    network.routes[IMAGE_URL] = _response(IMAGE_URL, body=b"\x89PNG", type_="cors")

    await respond(config, FetchRequest(url=IMAGE_URL), network, cache)
    await cache.flush()
    second = await respond(config, FetchRequest(url=IMAGE_URL), network, cache)

    assert second.body == b"\x89PNG"
    assert network.calls == [IMAGE_URL]


@pytest.mark.asyncio
async def test_image_miss_with_error_status_is_returned_uncached() -> None:
    config, cache, network = _setup()

    response = await respond(config, FetchRequest(url=IMAGE_URL), network, cache)

    assert response.status == 404
    assert await _dynamic_keys(cache) == []


@pytest.mark.asyncio
async def test_image_miss_while_offline_propagates() -> None:
    config, cache, network = _setup()
    network.offline = True

    with pytest.raises(NetworkError):
        await respond(config, FetchRequest(url=IMAGE_URL), network, cache)


@pytest.mark.asyncio
async def test_asset_cached_copy_is_served_without_network() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/_next/static/app.js"
    store = await cache.storage.open(cache.static_name)
    await store.put(url, _response(url, body=b"cached-js"))

    response = await respond(config, FetchRequest(url=url), network, cache)

    assert response.body == b"cached-js"
    assert network.calls == []


@pytest.mark.asyncio
async def test_asset_miss_fetches_once_and_caches_basic_200() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/_next/static/app.js"
    network.routes[url] = _response(url, body=b"js")

    await respond(config, FetchRequest(url=url), network, cache)

    assert network.calls == [url]
    assert await _dynamic_keys(cache) == [url]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "type_"),
    [(200, "cors"), (200, "opaque"), (404, "basic"), (204, "basic")],
)
async def test_asset_only_basic_200_is_cached(status: int, type_: ResponseType) -> None:
    config, cache, network = _setup()
    url = "https://fonts.example/font.woff2" if type_ != "basic" else f"{ORIGIN}/font.woff2"
    network.routes[url] = _response(url, status=status, type_=type_)

    response = await respond(config, FetchRequest(url=url), network, cache)

    assert response.status == status
    assert await _dynamic_keys(cache) == []


@pytest.mark.asyncio
async def test_cache_key_ignores_fragment() -> None:
    config, cache, network = _setup()
    url = f"{ORIGIN}/about"
    network.routes[url + "#team"] = _response(url)

    await respond(config, FetchRequest(url=url + "#team"), network, cache)
    await cache.flush()
    await respond(config, FetchRequest(url=url + "#jobs"), network, cache)

    assert network.calls == [url + "#team"]


@pytest.mark.asyncio
async def test_cache_store_failures_do_not_fail_the_response() -> None:
    config, cache, network = _setup(_BrokenStorage())
    url = f"{ORIGIN}/index.css"
    network.routes[url] = _response(url, body=b"css")

    response = await respond(config, FetchRequest(url=url), network, cache)
    await cache.flush()

    assert response.body == b"css"
    assert cache.pending_writes == 0
