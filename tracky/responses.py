"""Serialization of aggregation and proxy results into HTTP responses."""

from __future__ import annotations

from typing import Dict, Iterable, List

from fastapi.responses import JSONResponse, PlainTextResponse

from .config import Settings
from .models import FetchOutcome, RejectReason
from .schemas import ProxyEntry

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"
CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

STATUS_BY_REASON: Dict[RejectReason, int] = {
    RejectReason.INVALID_FORMAT: 400,
    RejectReason.INVALID_PROTOCOL: 403,
    RejectReason.PRIVATE_NETWORK_BLOCKED: 403,
    RejectReason.UNAUTHORIZED_ORIGIN: 403,
    RejectReason.UPSTREAM_ERROR: 502,
    RejectReason.TIMEOUT: 504,
    RejectReason.CONTENT_TOO_LARGE: 413,
    RejectReason.CONTENT_INVALID: 422,
    RejectReason.FETCH_FAILED: 500,
}

MESSAGE_BY_REASON: Dict[RejectReason, str] = {
    RejectReason.INVALID_FORMAT: "Invalid URL format",
    RejectReason.INVALID_PROTOCOL: "Blocked: Only HTTP/HTTPS allowed",
    RejectReason.PRIVATE_NETWORK_BLOCKED: "Blocked: Access to private networks denied",
    RejectReason.UNAUTHORIZED_ORIGIN: "Unauthorized Proxy Usage",
    RejectReason.UPSTREAM_ERROR: "Upstream Error",
    RejectReason.TIMEOUT: "Upstream Timeout",
    RejectReason.CONTENT_TOO_LARGE: "File too large (Header Check)",
    RejectReason.CONTENT_INVALID: "Security Block: Content does not look like a tracker list",
    RejectReason.FETCH_FAILED: "Proxy Error",
}


def error_message(outcome: FetchOutcome) -> str:
    reason = outcome.reason or RejectReason.FETCH_FAILED
    message = MESSAGE_BY_REASON[reason]
    if reason is RejectReason.UPSTREAM_ERROR and outcome.status is not None:
        return f"{message}: {outcome.status}"
    return message


def tracker_list_response(trackers: List[str], double_newline: bool, settings: Settings) -> PlainTextResponse:
    separator = "\n\n" if double_newline else "\n"
    headers = {
        "Content-Disposition": f'inline; filename="{settings.download_filename}"',
        "Cache-Control": f"public, max-age={settings.response_max_age_seconds}",
        **CORS_HEADERS,
    }
    return PlainTextResponse(separator.join(trackers), headers=headers, media_type=TEXT_MEDIA_TYPE)


def config_error_response(message: str, status_code: int = 400) -> PlainTextResponse:
    return PlainTextResponse(
        f"# Error: {message}", status_code=status_code, headers=CORS_HEADERS, media_type=TEXT_MEDIA_TYPE
    )


def plain_error_response(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, media_type=TEXT_MEDIA_TYPE)


def proxy_entry(outcome: FetchOutcome) -> ProxyEntry:
    if outcome.ok:
        return ProxyEntry(success=True, content=outcome.body, status=outcome.status)
    return ProxyEntry(success=False, status=outcome.status, error=error_message(outcome))


def batch_response(outcomes: Iterable[FetchOutcome]) -> JSONResponse:
    """JSON map keyed by each requested URL string."""
    payload = {outcome.url: proxy_entry(outcome).model_dump(exclude_none=True) for outcome in outcomes}
    return JSONResponse(payload, headers=CORS_HEADERS)


def single_response(outcome: FetchOutcome) -> PlainTextResponse:
    if outcome.ok:
        return PlainTextResponse(outcome.body or "", media_type=TEXT_MEDIA_TYPE)
    reason = outcome.reason or RejectReason.FETCH_FAILED
    return plain_error_response(error_message(outcome), STATUS_BY_REASON[reason])
