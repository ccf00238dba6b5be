"""
Path resolution over arbitrary alert payloads.

A path is a dotted string such as "metadata.request.effective_tld" whose
segments may index arrays ("detected_values[2]", "items.0.name"). Keys are
matched exactly first and case-insensitively second, at every segment.

Absence is a normal outcome: resolve_path() returns None for any missing
key, out-of-range index or non-container intermediate, and never raises.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

_SEGMENT_RE = re.compile(r"^(?P<key>[^\[\]]*)(?P<indices>(?:\[\s*-?\d+\s*\])*)$")
_INDEX_RE = re.compile(r"\[\s*(-?\d+)\s*\]")


def lookup_key(obj: Any, key: str) -> Any:
    """Return obj[key], falling back to the first case-insensitive key match."""
    if not isinstance(obj, Mapping):
        return None
    if key in obj:
        return obj[key]
    wanted = key.lower()
    for candidate, value in obj.items():
        if isinstance(candidate, str) and candidate.lower() == wanted:
            return value
    return None


def _index(value: Any, idx: int) -> Any:
    if not isinstance(value, list) or idx < 0 or idx >= len(value):
        return None
    return value[idx]


def _step(current: Any, segment: str) -> Any:
    match = _SEGMENT_RE.match(segment)
    if match is None:
        # Unbalanced brackets: treat the whole segment as a literal key.
        return lookup_key(current, segment)

    key = match.group("key")
    indices = match.group("indices")
    if not key and not indices:
        return None
    if key:
        if isinstance(current, list) and key.isdigit():
            current = _index(current, int(key))
        else:
            current = lookup_key(current, key)
    for raw_idx in _INDEX_RE.findall(indices):
        if current is None:
            return None
        current = _index(current, int(raw_idx))
    return current


def resolve_path(obj: Any, path: str | None) -> Any:
    """Resolve a dotted/bracketed path against a nested payload.

    Returns None when any segment is missing.
    """
    if not path:
        return None
    current = obj
    for segment in path.strip().split("."):
        current = _step(current, segment.strip())
        if current is None:
            return None
    return current


def trailing_subpaths(path: str) -> list[str]:
    """Fallback paths for a dotted path that did not resolve.

    The last segment alone first, then the remaining proper suffixes from
    longest to shortest: "a.b.c.d" -> ["d", "b.c.d", "c.d"].
    """
    segments = [s for s in path.split(".") if s]
    if len(segments) < 2:
        return []
    suffixes = [".".join(segments[i:]) for i in range(1, len(segments) - 1)]
    return [segments[-1], *suffixes]


def to_text(value: Any) -> str:
    """Render a resolved JSON value as report text ("" for absent)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)
