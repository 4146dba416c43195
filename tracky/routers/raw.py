"""Aggregated tracker list endpoint."""

from __future__ import annotations

from typing import Callable, Optional

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from ..analysis.aggregate import aggregate
from ..cache import SourceCache
from ..codec import check_limits, decode_config, parse_url_list
from ..config import Settings
from ..deps import get_app_settings, get_http_client, get_request_logger, get_source_cache
from ..errors import ConfigError
from ..responses import config_error_response, tracker_list_response
from ..runners import SourceFetcher

router = APIRouter(prefix="/api", tags=["raw"])


@router.get("/raw", response_class=PlainTextResponse)
async def get_tracker_list(
    data: Optional[str] = Query(None, description="Encoded configuration payload."),
    urls: Optional[str] = Query(None, description="Comma-separated source URLs."),
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    cache: Optional[SourceCache] = Depends(get_source_cache),
    logger: Callable[[str], None] = Depends(get_request_logger),
) -> PlainTextResponse:
    if not data and not urls:
        return config_error_response("No config provided")
    try:
        config = decode_config(data) if data else parse_url_list(urls or "")
        check_limits(config, settings.max_sources)
    except ConfigError as exc:
        logger(f"Config rejected: {exc}")
        return config_error_response(str(exc))

    logger(f"Aggregating {len(config.sources)} sources and {len(config.manual)} manual entries")
    fetcher = SourceFetcher(
        client,
        timeout=settings.aggregate_timeout,
        max_bytes=settings.max_size_bytes,
        user_agent=settings.sync_user_agent,
        sample_chars=settings.content_sample_chars,
        cache=cache,
        cache_ttl=settings.source_cache_ttl_seconds,
        concurrency=settings.max_sources,
        logger=logger,
    )
    outcomes = await fetcher.fetch_all(config.sources)
    trackers = aggregate(config.manual, (outcome.body for outcome in outcomes if outcome.ok))
    logger(f"Returning {len(trackers)} unique trackers")
    return tracker_list_response(trackers, config.double_newline, settings)
