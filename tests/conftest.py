import asyncio
from typing import Awaitable, Callable, Dict, List, Union

import httpx
import pytest

from tracky.config import Settings

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class FakeUpstream:
    """Routes outbound requests by URL to canned bodies or callables."""

    def __init__(self) -> None:
        self.routes: Dict[str, Handler] = {}
        self.requests: List[httpx.Request] = []

    def text(self, url: str, body: str, status: int = 200, **headers: str) -> None:
        self.routes[url] = lambda _request: httpx.Response(status, text=body, headers=headers)

    def hang(self, url: str, seconds: float = 10.0) -> None:
        async def slow(_request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(seconds)
            return httpx.Response(200, text="udp://slow.example:80/announce")

        self.routes[url] = slow

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(404, text="not found")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        aggregate_timeout_ms=300,
        proxy_timeout_ms=300,
        source_cache_ttl_seconds=0,
        _env_file=None,
    )
