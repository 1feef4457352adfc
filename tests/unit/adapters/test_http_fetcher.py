"""
aiohttp HTTP fetcher 테스트

aiohttp 테스트 서버를 띄워 실제 요청으로 검증합니다.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from capchat.adapters.http.fetcher import HttpFetcher
from capchat.core.errors import FetchError


def _app():
    async def feed(request):
        return web.Response(body=b"<rss/>", content_type="application/rss+xml", charset="utf-8")

    async def missing(request):
        return web.Response(status=404, text="nope")

    async def slow(request):
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    async def agent(request):
        return web.Response(text=request.headers.get("User-Agent", ""))

    app = web.Application()
    app.router.add_get("/feed", feed)
    app.router.add_get("/missing", missing)
    app.router.add_get("/slow", slow)
    app.router.add_get("/agent", agent)
    return app


@pytest.mark.asyncio
async def test_get_ok():
    """2xx 응답 본문과 Content-Type"""
    async with test_utils.TestServer(_app()) as server:
        async with HttpFetcher(timeout=5) as fetcher:
            resp = await fetcher.get(str(server.make_url("/feed")))
    assert resp.status == 200
    assert resp.body == b"<rss/>"
    assert resp.content_type.startswith("application/rss+xml")


@pytest.mark.asyncio
async def test_user_agent_sent():
    """User-Agent 헤더 전송"""
    async with test_utils.TestServer(_app()) as server:
        async with HttpFetcher(timeout=5, user_agent="capchat-test") as fetcher:
            resp = await fetcher.get(str(server.make_url("/agent")))
    assert resp.body == b"capchat-test"


@pytest.mark.asyncio
async def test_non_2xx_is_fetch_error():
    """2xx가 아니면 FetchError (상태 코드 포함)"""
    async with test_utils.TestServer(_app()) as server:
        async with HttpFetcher(timeout=5) as fetcher:
            with pytest.raises(FetchError) as exc:
                await fetcher.get(str(server.make_url("/missing")))
    assert exc.value.status == 404
    assert "HTTP 404" in str(exc.value)


@pytest.mark.asyncio
async def test_timeout_is_fetch_error():
    """타임아웃은 FetchError"""
    async with test_utils.TestServer(_app()) as server:
        async with HttpFetcher(timeout=0.1) as fetcher:
            with pytest.raises(FetchError, match="timed out"):
                await fetcher.get(str(server.make_url("/slow")))


@pytest.mark.asyncio
async def test_connection_refused_is_fetch_error():
    """연결 실패는 FetchError"""
    async with HttpFetcher(timeout=5) as fetcher:
        with pytest.raises(FetchError, match="request failed"):
            await fetcher.get("http://127.0.0.1:1/feed")
