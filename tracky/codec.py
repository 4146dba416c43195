"""Wire codec for the ``data`` query parameter.

A payload is ``Base64(LatinEscape(Compress(JSON)))``:

* ``Compress`` either prefixes the JSON with ``U+00FF`` (stored verbatim) or
  writes a dictionary: one count character ``N``, then ``N`` entries of
  ``[uint16 big-endian length][text]``, then the body in which ``U+E000 + i``
  stands for entry ``i``. Entry texts may themselves reference entries with a
  lower index.
* ``LatinEscape`` turns every UTF-16 code unit that does not fit into one
  byte into ``0xFF, low, high``.

Lengths and markers count UTF-16 code units so payloads stay compatible with
browser-side encoders.
"""

from __future__ import annotations

import base64
import json
import re
from collections import Counter
from typing import Any, Dict, List

from .errors import DecodeError, TooManySourcesError
from .models import Configuration

__all__ = [
    "BYPASS_MARKER",
    "MARKER_BASE",
    "MAX_DICTIONARY_ENTRIES",
    "MAX_EXPANDED_CHARS",
    "check_limits",
    "compress_text",
    "decode_config",
    "decompress_text",
    "encode_config",
    "escape_latin",
    "parse_url_list",
    "restore_escapes",
]

ESCAPE_BYTE = 0xFF
BYPASS_MARKER = "\u00ff"
MARKER_BASE = 0xE000
# A count of 255 would read back as the bypass marker.
MAX_DICTIONARY_ENTRIES = 254
# Expanded JSON larger than this is treated as a malformed payload.
MAX_EXPANDED_CHARS = 1024 * 1024

_MARKER_RE = re.compile("[\ue000-\ue0fe]")
_TOKEN_RE = re.compile(
    r"[a-z][a-z0-9+.-]*://"
    r"|/[^\s\"/,:\[\]{}]{2,}"
    r"|\.[^\s\".,/:\[\]{}]{3,}"
    r"|[^\s\".,/:\[\]{}]{4,}",
    re.IGNORECASE,
)
_MARKER_COST = 3  # one private-use character escapes to three bytes


def decode_config(payload: str) -> Configuration:
    """Decode a ``data`` parameter into a :class:`Configuration`.

    Any failure, at whichever stage, raises :class:`DecodeError`.
    """
    try:
        raw = _b64decode(payload)
        document = _join_surrogates(decompress_text(restore_escapes(raw)))
        data = json.loads(document)
    except (ValueError, RecursionError) as exc:
        raise DecodeError() from exc
    return _to_configuration(data)


def encode_config(config: Configuration, *, compress: bool = True) -> str:
    """Encode ``config`` so that :func:`decode_config` returns an equal value."""
    document = json.dumps(_to_document(config), ensure_ascii=False, separators=(",", ":"))
    units = _split_surrogates(document)
    if compress and not _MARKER_RE.search(units):
        text = compress_text(units)
    else:
        text = BYPASS_MARKER + units
    return base64.b64encode(escape_latin(text)).decode("ascii")


def parse_url_list(value: str) -> Configuration:
    """Build a configuration from the comma-separated ``urls`` parameter."""
    sources = [item.strip() for item in value.split(",") if item.strip()]
    return Configuration(sources=sources)


def check_limits(config: Configuration, max_sources: int) -> None:
    if len(config.sources) > max_sources:
        raise TooManySourcesError(max_sources)


def restore_escapes(data: bytes) -> str:
    """Undo ``LatinEscape``: ``0xFF lo hi`` becomes one code unit, other bytes map 1:1."""
    out: List[str] = []
    index = 0
    size = len(data)
    while index < size:
        byte = data[index]
        if byte == ESCAPE_BYTE and index + 2 < size:
            out.append(chr(data[index + 1] | data[index + 2] << 8))
            index += 3
        else:
            out.append(chr(byte))
            index += 1
    return "".join(out)


def escape_latin(text: str) -> bytes:
    out = bytearray()
    for char in text:
        code = ord(char)
        if code >= ESCAPE_BYTE:
            out += bytes((ESCAPE_BYTE, code & 0xFF, code >> 8))
        else:
            out.append(code)
    return bytes(out)


def decompress_text(text: str) -> str:
    """Expand a dictionary-compressed document (or strip the bypass marker)."""
    if not text:
        raise ValueError("empty payload")
    if text[0] == BYPASS_MARKER:
        return text[1:]

    count = ord(text[0])
    if count > MAX_DICTIONARY_ENTRIES:
        raise ValueError("invalid dictionary size")
    entries: List[str] = []
    pos = 1
    for _ in range(count):
        if pos + 2 > len(text):
            raise ValueError("truncated dictionary header")
        high, low = ord(text[pos]), ord(text[pos + 1])
        if high > 0xFF or low > 0xFF:
            raise ValueError("invalid dictionary entry length")
        end = pos + 2 + (high << 8 | low)
        if end > len(text):
            raise ValueError("truncated dictionary entry")
        entries.append(text[pos + 2:end])
        pos = end
    return _expand(text[pos:], entries)


def compress_text(document: str) -> str:
    """Dictionary-compress ``document``; always produces the dictionary form."""
    counts = Counter(_TOKEN_RE.findall(document))
    candidates = sorted(
        (token for token, seen in counts.items() if seen > 1 and len(token) <= 0xFFFF),
        key=lambda token: ((len(token) - _MARKER_COST) * counts[token], len(token)),
        reverse=True,
    )
    entries: List[str] = []
    body = document
    for token in candidates:
        if len(entries) >= MAX_DICTIONARY_ENTRIES:
            break
        occurrences = body.count(token)
        if (len(token) - _MARKER_COST) * occurrences <= len(token) + 2:
            continue
        body = body.replace(token, chr(MARKER_BASE + len(entries)))
        entries.append(token)

    header = [chr(len(entries))]
    for entry in entries:
        header.append(chr(len(entry) >> 8) + chr(len(entry) & 0xFF) + entry)
    return "".join(header) + body


def _expand(body: str, entries: List[str], limit: int = MAX_EXPANDED_CHARS) -> str:
    # Same result as substituting markers from the highest index down:
    # inside entry i only markers of lower indices are live.
    resolved: List[str] = []
    for entry in entries:
        resolved.append(_substitute(entry, resolved, limit))
    return _substitute(body, resolved, limit)


def _substitute(text: str, resolved: List[str], limit: int) -> str:
    live = len(resolved)
    size = len(text)
    for match in _MARKER_RE.finditer(text):
        index = ord(match.group()) - MARKER_BASE
        if index < live:
            size += len(resolved[index]) - 1
    if size > limit:
        raise ValueError("expanded payload too large")

    def replace(match: "re.Match[str]") -> str:
        index = ord(match.group()) - MARKER_BASE
        return resolved[index] if index < live else match.group()

    return _MARKER_RE.sub(replace, text)


def _b64decode(payload: str) -> bytes:
    compact = "".join(payload.replace(" ", "+").split())
    if len(compact) % 4 == 0 and compact.endswith("="):
        compact = compact[:-2] if compact.endswith("==") else compact[:-1]
    if "=" in compact or len(compact) % 4 == 1:
        raise ValueError("invalid base64 length")
    padded = compact + "=" * (-len(compact) % 4)
    return base64.b64decode(padded.encode("ascii"), validate=True)


def _split_surrogates(text: str) -> str:
    if all(ord(char) <= 0xFFFF for char in text):
        return text
    raw = text.encode("utf-16-le", "surrogatepass")
    return "".join(chr(int.from_bytes(raw[i:i + 2], "little")) for i in range(0, len(raw), 2))


def _join_surrogates(text: str) -> str:
    if not any("\ud800" <= char <= "\udfff" for char in text):
        return text
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _to_configuration(data: Any) -> Configuration:
    if not isinstance(data, dict):
        raise DecodeError()
    return Configuration(
        sources=_string_list(data.get("sources")),
        manual=_string_list(data.get("manual")),
        double_newline=data.get("doubleNewline") is True,
    )


def _to_document(config: Configuration) -> Dict[str, Any]:
    return {
        "sources": list(config.sources),
        "manual": list(config.manual),
        "doubleNewline": bool(config.double_newline),
    }
