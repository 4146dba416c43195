"""Build the ``data`` parameter of /api/raw from source and tracker list files."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import urlencode

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from tracky.codec import check_limits, encode_config
from tracky.config import get_settings
from tracky.errors import TooManySourcesError
from tracky.models import Configuration

settings = get_settings()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Encode a tracker sync configuration for /api/raw.")
    parser.add_argument("--sources", type=Path, help="File with newline-separated tracker list URLs.")
    parser.add_argument("--manual", type=Path, help="File with newline-separated tracker URIs to always include.")
    parser.add_argument("--double-newline", action="store_true", help="Separate trackers with a blank line.")
    parser.add_argument("--no-compress", action="store_true", help="Store the JSON without dictionary compression.")
    parser.add_argument("--base-url", help="Print a full /api/raw URL on this host instead of the bare payload.")
    args = parser.parse_args(argv)
    if not args.sources and not args.manual:
        parser.error("at least one of --sources or --manual is required")
    return args


def _read_list(path: Optional[Path]) -> List[str]:
    if path is None:
        return []
    entries: List[str] = []
    with path.open(encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            entries.append(line)
    return entries


def build_payload(args: argparse.Namespace) -> str:
    config = Configuration(
        sources=_read_list(args.sources),
        manual=_read_list(args.manual),
        double_newline=args.double_newline,
    )
    check_limits(config, settings.max_sources)
    payload = encode_config(config, compress=not args.no_compress)
    if args.base_url:
        return f"{args.base_url.rstrip('/')}/api/raw?{urlencode({'data': payload})}"
    return payload


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    try:
        print(build_payload(args))
    except TooManySourcesError as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    main()
