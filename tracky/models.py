"""Plain data types passed between the decoder, validator, fetcher and aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RejectReason(str, Enum):
    """Why a requested target produced no usable body."""

    INVALID_FORMAT = "invalid_format"
    INVALID_PROTOCOL = "invalid_protocol"
    PRIVATE_NETWORK_BLOCKED = "private_network_blocked"
    UNAUTHORIZED_ORIGIN = "unauthorized_origin"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"
    CONTENT_TOO_LARGE = "content_too_large"
    CONTENT_INVALID = "content_invalid"
    FETCH_FAILED = "fetch_failed"


class HostCategory(str, Enum):
    """Closed classification of a literal hostname."""

    LOOPBACK = "loopback"
    LINK_LOCAL = "link_local"
    PRIVATE_RANGE = "private_range"
    UNSPECIFIED = "unspecified"
    PUBLIC = "public"
    UNRESOLVABLE = "unresolvable"


@dataclass
class Configuration:
    sources: List[str] = field(default_factory=list)
    manual: List[str] = field(default_factory=list)
    double_newline: bool = False


@dataclass(frozen=True)
class ValidatedTarget:
    url: str
    hostname: str
    category: HostCategory = HostCategory.PUBLIC


@dataclass
class FetchOutcome:
    """Result of one fetch: a body, or a reject reason (plus upstream status if any)."""

    url: str
    body: Optional[str] = None
    reason: Optional[RejectReason] = None
    status: Optional[int] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.reason is None and self.body is not None

    @classmethod
    def success(cls, url: str, body: str, *, status: Optional[int] = None, from_cache: bool = False) -> "FetchOutcome":
        return cls(url=url, body=body, status=status, from_cache=from_cache)

    @classmethod
    def rejected(cls, url: str, reason: RejectReason, *, status: Optional[int] = None) -> "FetchOutcome":
        return cls(url=url, reason=reason, status=status)
