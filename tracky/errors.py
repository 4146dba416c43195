"""Exception hierarchy for config decoding and target validation."""

from __future__ import annotations

from .models import RejectReason

__all__ = [
    "TrackyError",
    "ConfigError",
    "DecodeError",
    "TooManySourcesError",
    "TargetRejected",
]


class TrackyError(RuntimeError):
    """Base exception for the tracker sync proxy."""


class ConfigError(TrackyError):
    """Raised when a request configuration is structurally unusable."""


class DecodeError(ConfigError):
    """Raised when an encoded payload fails any decoding stage."""

    def __init__(self, message: str = "Invalid Base64 JSON") -> None:
        super().__init__(message)


class TooManySourcesError(ConfigError):
    """Raised when a request names more sources than allowed."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Too many sources (Max {limit})")
        self.limit = limit


class TargetRejected(TrackyError):
    """Raised when a candidate URL must not be fetched."""

    def __init__(self, reason: RejectReason, url: str = "") -> None:
        super().__init__(f"{reason.value}: {url}" if url else reason.value)
        self.reason = reason
        self.url = url
