"""
Fuzzy label / sample-value search over alert payloads.

Used when path resolution fails or no path is known:
  - find_by_label()        key whose normalized name overlaps a display label
  - find_by_sample()       value equal to a previously seen sample value
  - find_path_by_sample()  dotted path of that value (template learning)

All three walk the payload depth-first. Containers already visited are
tracked by identity (id()), so two equal-but-distinct subtrees are both
searched while genuine reference cycles terminate. Recursion stops at
max_depth, defaulting to Settings.search_max_depth.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from soc_formatter.config import get_settings
from soc_formatter.engine.paths import to_text

_LABEL_STRIP_RE = re.compile(r"[\s_\-]+")


def normalize_label(text: str) -> str:
    return _LABEL_STRIP_RE.sub("", text).lower()


def _depth_limit(max_depth: Optional[int]) -> int:
    return max_depth if max_depth is not None else get_settings().search_max_depth


def _is_scalar(value: Any) -> bool:
    return not isinstance(value, (Mapping, list))


# ---------------------------------------------------------------------------
# Label search
# ---------------------------------------------------------------------------

def _label_walk(obj: Mapping, wanted: str, depth: int, limit: int, visited: set[int]) -> Any:
    if depth > limit or id(obj) in visited:
        return None
    visited.add(id(obj))

    for key, value in obj.items():
        if not isinstance(key, str):
            continue
        normalized = normalize_label(key)
        if normalized and (normalized in wanted or wanted in normalized):
            if not isinstance(value, Mapping):
                return value
        if isinstance(value, Mapping):
            found = _label_walk(value, wanted, depth + 1, limit, visited)
            if found is not None:
                return found
    return None


def find_by_label(obj: Any, label: str, *, max_depth: Optional[int] = None) -> Any:
    """First value whose key contains, or is contained by, the label.

    Keys and label are compared lower-cased with whitespace, "_" and "-"
    removed. A matching key that holds an object is descended into rather
    than returned. Arrays are not searched.
    """
    wanted = normalize_label(label or "")
    if not wanted or not isinstance(obj, Mapping):
        return None
    return _label_walk(obj, wanted, 0, _depth_limit(max_depth), set())


# ---------------------------------------------------------------------------
# Sample-value search
# ---------------------------------------------------------------------------

def _sample_walk(
    node: Any,
    sample: str,
    prefix: str,
    depth: int,
    limit: int,
    visited: set[int],
) -> Optional[tuple[str, Any]]:
    if depth > limit or id(node) in visited:
        return None
    visited.add(id(node))

    if isinstance(node, Mapping):
        items = [(v, f"{prefix}.{k}" if prefix else str(k)) for k, v in node.items()]
    else:
        items = [(v, f"{prefix}[{i}]") for i, v in enumerate(node)]

    for value, path in items:
        if _is_scalar(value):
            if to_text(value).strip() == sample:
                return path, value
            continue
        found = _sample_walk(value, sample, path, depth + 1, limit, visited)
        if found is not None:
            return found
    return None


def _search_sample(obj: Any, sample_value: Any, max_depth: Optional[int]) -> Optional[tuple[str, Any]]:
    if sample_value is None or _is_scalar(obj):
        return None
    sample = to_text(sample_value).strip()
    if not sample:
        return None
    return _sample_walk(obj, sample, "", 0, _depth_limit(max_depth), set())


def find_by_sample(obj: Any, sample_value: Any, *, max_depth: Optional[int] = None) -> Any:
    """First scalar (array elements included) whose text equals the trimmed sample."""
    found = _search_sample(obj, sample_value, max_depth)
    return found[1] if found else None


def find_path_by_sample(obj: Any, sample_value: Any, *, max_depth: Optional[int] = None) -> Optional[str]:
    """Dotted path of the value find_by_sample() would return, e.g. "host.ips[1]"."""
    found = _search_sample(obj, sample_value, max_depth)
    return found[0] if found else None
