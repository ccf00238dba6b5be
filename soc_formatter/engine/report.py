"""
Report pipeline — raw alert → formatted text.

    extract_alert  →  select_template  →  format_report

Entry point: def run(input: FormatInput) -> FormatOutput

Pure: templates and global mappings arrive in the input, already fetched
by the caller. The only failure surfaced is malformed raw JSON.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from soc_formatter.engine.extract import alert_name_of, extract_alert, parse_payload
from soc_formatter.engine.formatter import default_mapping_sources, format_report
from soc_formatter.engine.select import select_template
from soc_formatter.models.engine_io import FormatInput, FormatOutput
from soc_formatter.models.report import FormatResult
from soc_formatter.models.template import AlertFormatTemplate, FieldMapping

logger = logging.getLogger(__name__)


def format_payload(
    payload: Mapping[str, Any],
    templates: Sequence[AlertFormatTemplate] = (),
    global_mappings: Sequence[FieldMapping] = (),
    *,
    threshold: Optional[float] = None,
    allowed_tenants: Optional[Sequence[str]] = None,
    timezone_name: Optional[str] = None,
    max_depth: Optional[int] = None,
) -> FormatResult:
    alert = extract_alert(payload, allowed_tenants=allowed_tenants, timezone_name=timezone_name)

    logger.info(
        "report.start",
        extra={"alert_name": alert.alert_name, "templates": len(templates)},
    )

    # Selection uses the bare name: "Unknown Alert" must not fuzzy-match a template.
    match = select_template(
        alert_name_of(payload, default=""), alert.event_name, templates, threshold=threshold
    )
    sources = default_mapping_sources(match.template if match else None, global_mappings)
    result = format_report(payload, alert, match, sources, max_depth=max_depth)

    logger.info(
        "report.complete",
        extra={
            "alert_name": alert.alert_name,
            "strategy": result.strategy.value,
            "template": result.template_identifier,
            "match_score": result.match_score,
        },
    )
    return result


def format_json(text: str, *args: Any, **kwargs: Any) -> FormatResult:
    """Parse raw alert JSON and format it.

    Raises:
        ValueError: If the text is not a JSON object.
    """
    return format_payload(parse_payload(text), *args, **kwargs)


def run(input: FormatInput) -> FormatOutput:
    """Format one alert.

    Args:
        input: FormatInput carrying either a parsed payload or raw JSON,
            plus the stored templates and global mappings.

    Raises:
        ValueError: If neither payload nor raw_json is given, or raw_json
            is malformed.
    """
    if input.payload is not None:
        payload = input.payload
    elif input.raw_json is not None:
        payload = parse_payload(input.raw_json)
    else:
        raise ValueError("FormatInput requires either payload or raw_json")

    result = format_payload(payload, input.templates, input.global_mappings)
    return FormatOutput(result=result)
