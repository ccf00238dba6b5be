"""
Template learning — sample alert + analyst's desired output → template.

The expected output is the report an analyst would have written by hand
for the sample:

    Suspicious Login                <- alert name (skipped)
    3/4/25, 9:15 AM                 <- display time (skipped)
    A login from an unusual place   <- description (skipped)
    Source IP                       <- label
    10.1.2.3                        <- value, located in the sample by equality

Every label whose value can be found in the sample becomes a FieldMapping,
so later alerts of the same type render through the FIELD_MAPPINGS tier.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from soc_formatter.engine.extract import alert_name_of, event_name_of
from soc_formatter.engine.paths import resolve_path, to_text
from soc_formatter.engine.search import find_path_by_sample
from soc_formatter.models.template import AlertFormatTemplate, FieldMapping

logger = logging.getLogger(__name__)

_DATE_LINE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{2},?\s+\d{1,2}:\d{2}\s+(AM|PM)", re.IGNORECASE)
_DATE_PREFIX_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{2}")
_DOTTED_QUAD_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+")
_WINDOWS_PATH_RE = re.compile(r"^[a-z]:\\", re.IGNORECASE)

# Header lines longer than this are taken to be the description.
_DESCRIPTION_MIN_LENGTH = 50


def looks_like_value(line: str) -> bool:
    return (
        len(line) > 5
        or "\\" in line
        or "/" in line
        or "." in line
        or _DOTTED_QUAD_RE.match(line) is not None
        or _WINDOWS_PATH_RE.match(line) is not None
    )


def _is_description(line: str, sample_description: str) -> bool:
    if sample_description and line == sample_description:
        return True
    return len(line) > _DESCRIPTION_MIN_LENGTH


def extract_field_mappings(
    sample: Mapping[str, Any],
    expected_text: str,
    *,
    max_depth: Optional[int] = None,
) -> list[FieldMapping]:
    """Label → path mappings recovered from an expected report.

    A line is a label when the line right after it looks like a value and
    that value occurs verbatim somewhere in the sample. Labels without a
    locatable value are dropped; a repeated label keeps its first mapping.
    """
    names = {
        to_text(resolve_path(sample, "xdr_event.display_name")).strip(),
        to_text(resolve_path(sample, "event_name")).strip(),
    } - {""}
    sample_description = to_text(resolve_path(sample, "xdr_event.description")).strip()

    lines = [line.strip() for line in (expected_text or "").splitlines()]
    mappings: list[FieldMapping] = []
    seen: set[str] = set()

    first_line = True
    in_header = True
    description_seen = False
    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1
        if not line:
            continue

        if first_line:
            first_line = False
            if line in names:
                continue
        if _DATE_LINE_RE.match(line):
            continue
        if in_header:
            if not description_seen and _is_description(line, sample_description):
                description_seen = True
                continue
            in_header = False

        next_line = lines[i] if i < len(lines) else ""
        if not next_line or _DATE_PREFIX_RE.match(next_line) or not looks_like_value(next_line):
            continue

        path = find_path_by_sample(sample, next_line, max_depth=max_depth)
        i += 1  # the value line is consumed either way
        if path is None:
            logger.debug("template_learn.value_not_found", extra={"label": line})
            continue
        if line in seen:
            continue
        seen.add(line)
        mappings.append(FieldMapping(label=line, path=path, sample_value=next_line))

    return mappings


def learn_template(
    sample: Mapping[str, Any],
    expected_text: str,
    *,
    max_depth: Optional[int] = None,
) -> AlertFormatTemplate:
    """Build a template from one sample alert and its desired report.

    Raises:
        ValueError: If the sample has neither an alert name nor an event name.
    """
    alert_name = alert_name_of(sample, default="")
    event_name = event_name_of(sample)
    identifier = alert_name.strip().lower() or event_name.strip().lower()
    if not identifier:
        raise ValueError("Could not determine alert name from JSON")

    mappings = extract_field_mappings(sample, expected_text, max_depth=max_depth)
    logger.info(
        "template_learn.complete",
        extra={"template": identifier, "mappings": len(mappings)},
    )
    return AlertFormatTemplate(
        alert_identifier=identifier,
        alert_name=alert_name,
        event_name=event_name,
        expected_format=(expected_text or "").strip(),
        field_mappings=mappings,
    )
