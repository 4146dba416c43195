"""FastAPI dependencies for shared per-process collaborators."""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

import httpx
from fastapi import Request

from .cache import SourceCache
from .config import Settings, get_settings

log = logging.getLogger("tracky.requests")


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The outbound client created in the application lifespan."""
    return request.app.state.http_client


def get_source_cache(request: Request) -> Optional[SourceCache]:
    return getattr(request.app.state, "source_cache", None)


def get_request_logger(request: Request) -> Callable[[str], None]:
    """Per-request logger callable; diagnostics never reach the response body."""
    request_id = request.headers.get("x-request-id", "")[:32] or uuid.uuid4().hex[:8]

    def emit(message: str) -> None:
        log.info("[%s] %s", request_id, message)

    return emit
