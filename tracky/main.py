"""FastAPI entrypoint for the tracker sync proxy."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .cache import MemorySourceCache
from .config import Settings, get_settings
from .http_client import build_async_client
from .routers import proxy, raw
from .schemas import HealthStatus

log = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application; ``transport`` lets tests stand in for the network."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.http_client = build_async_client(settings, transport=transport)
        app.state.source_cache = MemorySourceCache() if settings.source_cache_ttl_seconds > 0 else None
        log.info("Outbound client ready (max %d sources per request)", settings.max_sources)
        try:
            yield
        finally:
            await app.state.http_client.aclose()

    app = FastAPI(title="Tracky Sync API", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.include_router(raw.router)
    app.include_router(proxy.router)

    @app.get("/healthz", response_model=HealthStatus)
    def healthcheck() -> HealthStatus:
        return HealthStatus()

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("tracky.main:app", host=settings.uvicorn_host, port=settings.uvicorn_port)


if __name__ == "__main__":
    run()
