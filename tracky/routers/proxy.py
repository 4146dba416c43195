"""Single-target and batch proxy endpoints."""

from __future__ import annotations

import json
from typing import Callable, List, Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError

from ..config import Settings
from ..deps import get_app_settings, get_http_client, get_request_logger
from ..errors import TargetRejected
from ..models import FetchOutcome, RejectReason
from ..responses import batch_response, plain_error_response, single_response
from ..runners import SourceFetcher
from ..schemas import ProxyRequest
from ..security.hosts import validate_target
from ..security.origin import request_origin_allowed

router = APIRouter(prefix="/api", tags=["proxy"])


class _BadRequest(Exception):
    pass


def _parse_urls_param(value: str) -> List[str]:
    try:
        parsed = json.loads(value)
    except ValueError as exc:
        raise _BadRequest("Invalid urls parameter") from exc
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise _BadRequest("Invalid urls parameter")
    return parsed


async def _read_body(request: Request) -> ProxyRequest:
    raw = await request.body()
    if not raw.strip():
        return ProxyRequest()
    try:
        return ProxyRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise _BadRequest("Invalid request body") from exc


async def _handle(
    request: Request,
    url: Optional[str],
    urls: Optional[List[str]],
    settings: Settings,
    client: httpx.AsyncClient,
    logger: Callable[[str], None],
) -> Response:
    fetcher = SourceFetcher(
        client,
        timeout=settings.proxy_timeout,
        max_bytes=settings.max_size_bytes,
        user_agent=settings.proxy_user_agent,
        sample_chars=settings.content_sample_chars,
        concurrency=settings.max_sources,
        logger=logger,
    )
    if urls is not None:
        if len(urls) > settings.max_sources:
            return plain_error_response(f"Too many sources (Max {settings.max_sources})", 400)
        logger(f"Batch proxy for {len(urls)} URLs")
        return batch_response(await fetcher.fetch_all(urls))

    if not url:
        return plain_error_response("Missing URL", 400)
    try:
        validate_target(url)
    except TargetRejected as exc:
        logger(f"Rejected {url!r}: {exc.reason.value}")
        return single_response(FetchOutcome.rejected(url, exc.reason))
    if not request_origin_allowed(request):
        logger(f"Origin rejected for {url!r}")
        return single_response(FetchOutcome.rejected(url, RejectReason.UNAUTHORIZED_ORIGIN))
    return single_response(await fetcher.fetch(url))


@router.get("/proxy")
async def proxy_get(
    request: Request,
    url: Optional[str] = Query(None, description="Single target URL."),
    urls: Optional[str] = Query(None, description="JSON array of target URLs."),
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    logger: Callable[[str], None] = Depends(get_request_logger),
) -> Response:
    try:
        url_list = _parse_urls_param(urls) if urls is not None else None
    except _BadRequest as exc:
        return plain_error_response(str(exc), 400)
    return await _handle(request, url, url_list, settings, client, logger)


@router.post("/proxy")
async def proxy_post(
    request: Request,
    url: Optional[str] = Query(None, description="Single target URL."),
    urls: Optional[str] = Query(None, description="JSON array of target URLs."),
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    logger: Callable[[str], None] = Depends(get_request_logger),
) -> Response:
    try:
        body = await _read_body(request)
        url_list = body.urls
        if url_list is None and urls is not None:
            url_list = _parse_urls_param(urls)
    except _BadRequest as exc:
        return plain_error_response(str(exc), 400)
    return await _handle(request, body.url or url, url_list, settings, client, logger)
