"""Request and target guards."""

from .hosts import classify_host, is_private_host, validate_target
from .origin import check_origin, request_origin_allowed

__all__ = ["check_origin", "classify_host", "is_private_host", "request_origin_allowed", "validate_target"]
