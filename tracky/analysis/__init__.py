"""Tracker list aggregation."""

from .aggregate import aggregate, clean_line

__all__ = ["aggregate", "clean_line"]
