"""Fixtures for asset cache tests.

HTTP traffic goes through httpx.MockTransport; every request is recorded so
tests can assert on network call counts and headers.
"""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest

from nexus_core.config import AssetCacheConfig
from nexus_core.core.asset_cache import AssetCache

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeRemote:
    """Scripted remote server: one response per URL, requests recorded."""

    def __init__(self):
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def serve(
        self,
        url: str,
        body: bytes = PNG_BYTES,
        status_code: int = 200,
        content_type: str | None = "image/png",
    ) -> None:
        headers = {"content-type": content_type} if content_type else {}

        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, content=body, headers=headers)

        self.routes[url] = respond

    def fail(
        self,
        url: str,
        error: type[httpx.HTTPError] = httpx.ConnectError,
        message: str = "connection refused",
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            raise error(message, request=request)

        self.routes[url] = respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        return route(request)


@pytest.fixture
def remote() -> FakeRemote:
    """Scripted remote server."""
    return FakeRemote()


@pytest.fixture
def cache_config(tmp_path) -> AssetCacheConfig:
    """Cache rooted in a temp dir with small size limits."""
    return AssetCacheConfig(
        cache_dir=str(tmp_path / "cache"),
        max_image_bytes=1024,
        max_media_bytes=2048,
    )


@pytest.fixture
async def asset_cache(cache_config, remote) -> AsyncGenerator[AssetCache, None]:
    """AssetCache wired to the scripted remote."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(remote.handler),
        headers={"User-Agent": cache_config.user_agent},
    )
    cache = AssetCache(cache_config, client=client)
    try:
        yield cache
    finally:
        await cache.close()
        await client.aclose()
