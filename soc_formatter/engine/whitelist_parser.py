"""
Whitelist-text parsing — analyst free text → WhitelistRule.

Notes look like:

    ESET Protect (ESET Inspect Alert): Common AutoStart registry modified ... [A0103a]
    Process Name:
    %LOCALAPPDATA%\\programs\\twinkle-tray\\twinkle tray.exe
    Sir Justin confirmed to whitelist ... only for this device UC-DR-JPADLAN ...

Line structure gives the alert header, an explicit process name and the
reason. Everything else (process, IP, device, tenant) comes from the
EXTRACTION_RULES table: an ordered list of (field, pattern, source)
entries, evaluated uniformly, where the first match fills an unset field.

The parser never raises; an empty note yields an empty rule and the caller
decides whether that is acceptable.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from soc_formatter.config import get_settings
from soc_formatter.models.whitelist import WhitelistRule

_PROCESS_LABEL_RES = (
    re.compile(r"^process\s*name\s*:?\s*$", re.IGNORECASE),
    re.compile(r"^processname\s*:?\s*$", re.IGNORECASE),
)
_HEADER_RE = re.compile(r"alert|detection|threat|event|signature", re.IGNORECASE)
_APPLIES_TO_ALL_RE = re.compile(
    r"all\s+(endpoints|endpoint|devices|hosts|machines|servers|alerts|alert names)",
    re.IGNORECASE,
)
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9_.-]+")

STOPWORDS = frozenset({
    "the", "and", "for", "with", "this", "that", "only", "as", "per", "is", "are",
    "was", "were", "to", "of", "on", "in", "by", "an", "a", "be", "or", "if", "it",
    "all", "authorized", "whitelisted", "legitimate", "software", "activity",
    "process", "script", "remote", "management", "platform",
})


class ExtractionRule(NamedTuple):
    field: str            # WhitelistRule attribute to fill
    pattern: re.Pattern   # group 1 is the value
    source: str           # "raw" (whole note) or "reason"


EXTRACTION_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("process_name", re.compile(r"([A-Za-z0-9._-]+\.exe)\b", re.IGNORECASE), "raw"),
    ExtractionRule("ip_address", re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b"), "raw"),
    ExtractionRule("device_name", re.compile(r"\b([A-Z]{2}-[A-Z]{2}-[A-Z0-9-]+)\b"), "reason"),
    ExtractionRule("device_name", re.compile(r"device\s+([A-Z0-9-]+)", re.IGNORECASE), "reason"),
    ExtractionRule("tenant_name", re.compile(r"tenant\s+([A-Za-z0-9._-]+)", re.IGNORECASE), "raw"),
    ExtractionRule("tenant_name", re.compile(r"tenant\s+([A-Za-z0-9._-]+)", re.IGNORECASE), "reason"),
)


def derive_match_tokens(text: str, limit: Optional[int] = None) -> list[str]:
    """Keywords of a note: lower-cased, longer than 3 chars, stop-words removed.

    Order is preserved and duplicates are kept.
    """
    if limit is None:
        limit = get_settings().whitelist_max_tokens
    words = _TOKEN_SPLIT_RE.sub(" ", (text or "").lower()).split()
    return [w for w in words if len(w) > 3 and w not in STOPWORDS][:limit]


def _process_label_index(lines: list[str]) -> int:
    for idx, line in enumerate(lines):
        if any(p.match(line) for p in _PROCESS_LABEL_RES):
            return idx
    return -1


def apply_extraction_rules(
    values: dict[str, Optional[str]],
    sources: dict[str, str],
    rules: tuple[ExtractionRule, ...] = EXTRACTION_RULES,
) -> dict[str, Optional[str]]:
    """Fill unset fields from the first matching rule; set fields are left alone."""
    for rule in rules:
        if values.get(rule.field):
            continue
        match = rule.pattern.search(sources.get(rule.source, ""))
        if match:
            values[rule.field] = match.group(1).strip()
    return values


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def parse_whitelist_text(text: str) -> WhitelistRule:
    """Convert one free-text whitelist note into a WhitelistRule."""
    raw = (text or "").strip()
    lines = [line.strip() for line in raw.splitlines() if line.strip()]

    process_name: Optional[str] = None
    proc_idx = _process_label_index(lines)
    if proc_idx >= 0 and proc_idx + 1 < len(lines):
        process_name = lines[proc_idx + 1]

    skipped = {proc_idx, proc_idx + 1} if proc_idx >= 0 else set()
    candidates = [line for idx, line in enumerate(lines) if idx not in skipped]

    header = next((line for line in candidates if _HEADER_RE.search(line) or ":" in line), "")
    if header:
        reason = " ".join(line for line in candidates if line != header)
    else:
        reason = " ".join(candidates)
    if not reason and len(lines) > 1:
        reason = " ".join(lines[1:])

    values = apply_extraction_rules(
        {"process_name": process_name},
        {"raw": raw, "reason": reason},
    )

    return WhitelistRule(
        alert_signature=header.strip(),
        process_name=_clean(values.get("process_name")),
        device_name=_clean(values.get("device_name")),
        tenant_name=_clean(values.get("tenant_name")),
        ip_address=_clean(values.get("ip_address")),
        reason=reason.strip() or raw,
        raw_text=raw,
        applies_to_all_alerts=bool(_APPLIES_TO_ALL_RE.search(raw)),
        match_tokens=derive_match_tokens(raw),
    )
