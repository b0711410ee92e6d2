from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import test_utils, web

from pyflkrd import FetchRequest, NetworkError, OfflineConfig
from pyflkrd._transport import HttpTransport, classify_response_type


def _app() -> web.Application:
    async def trending(request: web.Request) -> web.Response:
        return web.json_response({"results": [603, 438631]})

    async def echo(request: web.Request) -> web.Response:
        body = await request.read()
        return web.Response(
            status=201,
            body=body,
            headers={"X-Seen-Agent": request.headers.get("User-Agent", "")},
        )

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(1)
        return web.Response(text="late")

    async def moved(request: web.Request) -> web.Response:
        raise web.HTTPFound("/api/trending")

    async def login(request: web.Request) -> web.Response:
        response = web.Response(text="ok")
        response.headers.add("Set-Cookie", "session=abc; HttpOnly")
        response.headers.add("Set-Cookie", "theme=dark")
        return response

    app = web.Application()
    app.router.add_get("/api/trending", trending)
    app.router.add_post("/api/watchlist", echo)
    app.router.add_get("/slow", slow)
    app.router.add_get("/moved", moved)
    app.router.add_get("/api/session", login)
    return app


def _origin(server: test_utils.TestServer) -> str:
    return str(server.make_url("")).rstrip("/")


@pytest.mark.asyncio
async def test_same_origin_response_is_basic_and_buffered() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = OfflineConfig(origin=_origin(server))
        transport = HttpTransport(config, session)

        response = await transport.fetch(FetchRequest.resolve(config.origin, "/api/trending"))

    assert response.status == 200
    assert response.type == "basic"
    assert response.json_body() == {"results": [603, 438631]}


@pytest.mark.asyncio
async def test_post_sends_body_and_user_agent() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = OfflineConfig(origin=_origin(server))
        transport = HttpTransport(config, session)

        response = await transport.fetch(
            FetchRequest.resolve(config.origin, "/api/watchlist", method="post", body=b'{"movieId": 603}')
        )

    assert response.status == 201
    assert response.body == b'{"movieId": 603}'
    assert response.header("X-Seen-Agent") == "pyflkrd/1"


@pytest.mark.asyncio
async def test_error_status_is_returned_not_raised() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = OfflineConfig(origin=_origin(server))
        transport = HttpTransport(config, session)

        response = await transport.fetch(FetchRequest.resolve(config.origin, "/missing"))

    assert response.status == 404
    assert not response.ok


@pytest.mark.asyncio
async def test_redirect_reports_final_url() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = OfflineConfig(origin=_origin(server))
        transport = HttpTransport(config, session)

        response = await transport.fetch(FetchRequest.resolve(config.origin, "/moved"))

    assert response.url.endswith("/api/trending")
    assert response.status == 200


@pytest.mark.asyncio
async def test_timeout_is_network_error() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = OfflineConfig(origin=_origin(server), request_timeout=0.05)
        transport = HttpTransport(config, session)

        with pytest.raises(NetworkError) as exc_info:
            await transport.fetch(FetchRequest.resolve(config.origin, "/slow"))

    assert exc_info.value.url.endswith("/slow")


@pytest.mark.asyncio
async def test_unreachable_host_is_network_error() -> None:
    config = OfflineConfig(origin="http://127.0.0.1:1")
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(config, session)
        with pytest.raises(NetworkError):
            await transport.fetch(FetchRequest.resolve(config.origin, "/"))


@pytest.mark.parametrize(
    ("url", "mode", "expected"),
    [
        ("https://flkrd.test/api/trending", "cors", "basic"),
        ("https://FLKRD.test/", "navigate", "basic"),
        ("https://image.tmdb.org/t/p/w500/a.jpg", "cors", "cors"),
        ("https://image.tmdb.org/t/p/w500/a.jpg", "no-cors", "opaque"),
        ("http://flkrd.test/", "cors", "cors"),
    ],
)
def test_classify_response_type(url: str, mode: str, expected: str) -> None:
    request = FetchRequest(url=url, mode=mode)  # type: ignore[arg-type]
    assert classify_response_type("https://flkrd.test", request, url) == expected


@pytest.mark.asyncio
async def test_repeated_response_headers_are_kept() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = OfflineConfig(origin=_origin(server))
        transport = HttpTransport(config, session)

        response = await transport.fetch(FetchRequest.resolve(config.origin, "/api/session"))

    assert response.header_values("Set-Cookie") == ["session=abc; HttpOnly", "theme=dark"]
