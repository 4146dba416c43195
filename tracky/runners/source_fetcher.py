"""Timeout- and size-bounded fetching of tracker list sources."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

import httpx

from ..cache import SourceCache, cache_key
from ..errors import TargetRejected
from ..models import FetchOutcome, RejectReason, ValidatedTarget
from ..security.hosts import validate_target

log = logging.getLogger(__name__)

TRACKER_MARKERS = ("udp://", "http://", "https://", "wss://")
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def truncate_body(text: str, max_chars: int) -> str:
    return text if len(text) <= max_chars else text[:max_chars]


def looks_like_tracker_list(text: str, sample_chars: int = 1000) -> bool:
    """Blank bodies pass; otherwise the leading sample must name a tracker scheme."""
    if not text.strip():
        return True
    sample = text[:sample_chars].casefold()
    return any(marker in sample for marker in TRACKER_MARKERS)


class _RedirectLimitExceeded(Exception):
    pass


class SourceFetcher:
    """Fetches remote tracker lists, one isolated bounded request per target."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout: float,
        max_bytes: int,
        user_agent: str,
        sample_chars: int = 1000,
        max_redirects: int = 5,
        cache: Optional[SourceCache] = None,
        cache_ttl: float = 0,
        concurrency: int = 20,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.sample_chars = sample_chars
        self.max_redirects = max_redirects
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.concurrency = max(1, min(concurrency, 20))
        self.headers = {"User-Agent": user_agent}
        self.logger = logger or log.debug

    async def fetch_all(self, urls: Sequence[str]) -> List[FetchOutcome]:
        """Fetch every URL concurrently; outcomes come back in request order."""
        if not urls:
            return []
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(url: str) -> FetchOutcome:
            async with semaphore:
                return await self.fetch(url)

        self.logger(f"Starting {len(urls)} concurrent fetches")
        outcomes = await asyncio.gather(*(bounded(url) for url in urls))
        succeeded = sum(1 for outcome in outcomes if outcome.ok)
        self.logger(f"Fetches finished: {succeeded}/{len(outcomes)} usable")
        return list(outcomes)

    async def fetch(self, raw_url: str) -> FetchOutcome:
        try:
            target = validate_target(raw_url)
        except TargetRejected as exc:
            self.logger(f"Rejected {raw_url!r}: {exc.reason.value}")
            return FetchOutcome.rejected(raw_url, exc.reason)

        key = cache_key(target.url)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger(f"Cache hit for {target.url}")
                return FetchOutcome.success(raw_url, cached, from_cache=True)

        try:
            outcome = await asyncio.wait_for(self._perform(raw_url, target), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            self.logger(f"Timeout after {self.timeout:.1f}s for {target.url}")
            return FetchOutcome.rejected(raw_url, RejectReason.TIMEOUT)
        except TargetRejected as exc:
            self.logger(f"Redirect from {target.url} rejected: {exc.reason.value}")
            return FetchOutcome.rejected(raw_url, exc.reason)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, OSError, _RedirectLimitExceeded) as exc:
            self.logger(f"Fetch failed for {target.url}: {exc.__class__.__name__}: {exc}")
            return FetchOutcome.rejected(raw_url, RejectReason.FETCH_FAILED)

        if outcome.ok:
            self.logger(f"Fetched {target.url} ({len(outcome.body or '')} chars)")
            if self.cache is not None:
                self.cache.set(key, outcome.body or "", self.cache_ttl)
        else:
            self.logger(f"Dropped {target.url}: {outcome.reason.value if outcome.reason else 'unknown'}")
        return outcome

    async def _perform(self, raw_url: str, target: ValidatedTarget) -> FetchOutcome:
        url = target.url
        for _hop in range(self.max_redirects + 1):
            async with self.client.stream("GET", url, headers=self.headers) as response:
                if response.status_code in REDIRECT_STATUSES and "location" in response.headers:
                    location = str(response.url.join(response.headers["location"]))
                    url = validate_target(location).url
                    continue
                if not response.is_success:
                    return FetchOutcome.rejected(raw_url, RejectReason.UPSTREAM_ERROR, status=response.status_code)

                declared = response.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > self.max_bytes:
                    return FetchOutcome.rejected(
                        raw_url, RejectReason.CONTENT_TOO_LARGE, status=response.status_code
                    )
                body = await self._read_capped(response)

            if not looks_like_tracker_list(body, self.sample_chars):
                return FetchOutcome.rejected(raw_url, RejectReason.CONTENT_INVALID, status=response.status_code)
            return FetchOutcome.success(raw_url, body, status=response.status_code)
        raise _RedirectLimitExceeded(f"more than {self.max_redirects} redirects")

    async def _read_capped(self, response: httpx.Response) -> str:
        chunks: List[str] = []
        size = 0
        async for chunk in response.aiter_text():
            remaining = self.max_bytes - size
            if len(chunk) >= remaining:
                chunks.append(chunk[:remaining])
                break
            chunks.append(chunk)
            size += len(chunk)
        return truncate_body("".join(chunks), self.max_bytes)
