"""Outbound httpx client shared by the fetchers of one process."""

from __future__ import annotations

import httpx

from .config import Settings, get_settings

ACCEPT_TEXT = "text/plain,text/*"


def build_async_client(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with safe defaults.

    Redirects are not followed by the client itself; the fetcher follows them
    hop by hop so every location goes through target validation.
    """
    settings = settings or get_settings()
    timeout = max(settings.aggregate_timeout, settings.proxy_timeout)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=False,
        headers={"Accept": ACCEPT_TEXT},
        limits=httpx.Limits(max_connections=settings.max_sources * 2),
        transport=transport,
    )
