"""Origin/Referer guard for the single-target proxy.

Both headers are client supplied, so this only keeps browsers on other sites
from using the proxy. It is not authentication.
"""

from typing import Optional

from fastapi import Request

LOCAL_ORIGINS = ("localhost", "127.0.0.1")


def check_origin(origin: Optional[str], referer: Optional[str], own_origin: str) -> bool:
    """Return True when the caller's Origin (or Referer) is absent or trusted."""
    claimed = origin or referer or ""
    if not claimed:
        return True
    if own_origin and own_origin in claimed:
        return True
    return any(local in claimed for local in LOCAL_ORIGINS)


def request_origin_allowed(request: Request) -> bool:
    own_origin = f"{request.url.scheme}://{request.url.netloc}"
    return check_origin(request.headers.get("origin"), request.headers.get("referer"), own_origin)
