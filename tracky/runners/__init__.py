"""Bounded source fetchers."""

from .source_fetcher import SourceFetcher, looks_like_tracker_list, truncate_body

__all__ = ["SourceFetcher", "looks_like_tracker_list", "truncate_body"]
