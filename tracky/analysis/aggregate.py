"""Merge manual trackers and fetched lists into one deduplicated list."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

TRACKER_RE = re.compile(r"^(udp|http|https|wss)://", re.IGNORECASE)


def clean_line(line: str) -> Optional[str]:
    """Return the trimmed tracker URI, or None for blanks, comments and other schemes."""
    clean = line.strip()
    if not clean or clean.startswith("#"):
        return None
    if not TRACKER_RE.match(clean):
        return None
    return clean


def aggregate(manual: Iterable[str], bodies: Iterable[Optional[str]]) -> List[str]:
    """Manual entries first, then each body's lines; the first occurrence keeps its slot."""
    trackers: Dict[str, None] = {}

    def add(line: str) -> None:
        clean = clean_line(line)
        if clean is not None and clean not in trackers:
            trackers[clean] = None

    for entry in manual:
        add(entry)
    for body in bodies:
        if not body:
            continue
        for line in body.split("\n"):
            add(line)
    return list(trackers)
