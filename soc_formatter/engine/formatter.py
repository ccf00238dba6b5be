"""
Template formatter — ExtractedAlert + payload (+ template) → report text.

Strategies, tried in order; the first whose precondition holds is final:
  1. FIELD_MAPPINGS  template has explicit label → path mappings
  2. TEXT_TEMPLATE   template has an expected-format text skeleton
  3. ESET            ESET Protect / Inspect alerts, fixed mapping set
  4. GENERIC         header block + classified canonical fields

Label lookups for the text-template strategy go through an ordered list of
MappingSource layers (highest precedence first). The usual stack is
[global, template, builtin]: a label defined in the global table shadows
the same label in the template and in the built-in defaults.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from soc_formatter.engine.classify import classify_alert, order_fields
from soc_formatter.engine.paths import resolve_path, to_text, trailing_subpaths
from soc_formatter.engine.search import find_by_label
from soc_formatter.models.alert import ExtractedAlert
from soc_formatter.models.report import FormatResult, ReportSection, ReportStrategy
from soc_formatter.models.template import (
    AlertFormatTemplate,
    FieldMapping,
    MappingSource,
    TemplateMatch,
)
from soc_formatter.utils.rendering import render_report

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Built-in mapping tables
# ---------------------------------------------------------------------------

DEFAULT_FIELD_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping(label="Source IP", path="srcip"),
    FieldMapping(label="Source Host", path="srcip_host"),
    FieldMapping(label="Source Port", path="srcport"),
    FieldMapping(label="Destination IP", path="dstip"),
    FieldMapping(label="Destination Host", path="dstip_host"),
    FieldMapping(label="Destination Port", path="dstport"),
    FieldMapping(label="Request Effective TLD", path="metadata.request.effective_tld"),
    FieldMapping(label="Domain Creation Time", path="metadata.request.domain_creation"),
    FieldMapping(label="Host IP", path="hostip"),
    FieldMapping(label="Host Name", path="host.name"),
    FieldMapping(label="Device Name", path="host.name"),
    FieldMapping(label="Process Path", path="process.executable"),
    FieldMapping(label="Process Name", path="process.name"),
    FieldMapping(label="User Name", path="user.name"),
    FieldMapping(label="Trigger Event", path="eset.trigger_event"),
    FieldMapping(label="Command Line", path="eset.command_line"),
    FieldMapping(label="Tenant", path="tenant_name"),
    FieldMapping(label="Severity", path="severity"),
    FieldMapping(label="Event Score", path="event_score"),
    FieldMapping(label="Tactic", path="xdr_event.tactic.name"),
    FieldMapping(label="Technique", path="xdr_event.technique.name"),
)

ESET_FIELD_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping(label="Host IP", path="hostip"),
    FieldMapping(label="Host Name", path="host.name"),
    FieldMapping(label="Process Path", path="process.executable"),
    FieldMapping(label="User Name", path="user.name"),
    FieldMapping(label="Trigger Event", path="eset.trigger_event"),
    FieldMapping(label="Command Line", path="eset.command_line"),
)

_ESET_DEVICE_MARKERS = {
    "dev_type": "eset_protect",
    "msg_class": "eset_protect_enterprise_inspector",
}

_OCCURRED_RE = re.compile(r"occur+ed", re.IGNORECASE)


def builtin_mapping_source() -> MappingSource:
    return MappingSource(name="builtin", mappings=list(DEFAULT_FIELD_MAPPINGS))


def default_mapping_sources(
    template: Optional[AlertFormatTemplate],
    global_mappings: Sequence[FieldMapping] = (),
) -> list[MappingSource]:
    """The standard [global, template, builtin] precedence stack."""
    sources: list[MappingSource] = []
    if global_mappings:
        sources.append(MappingSource(name="global", mappings=list(global_mappings)))
    if template is not None and template.field_mappings:
        sources.append(MappingSource(name="template", mappings=template.field_mappings))
    sources.append(builtin_mapping_source())
    return sources


def build_mapping_table(sources: Sequence[MappingSource]) -> dict[str, str]:
    """Merge sources into one label → path table; earlier sources win."""
    table: dict[str, str] = {}
    for source in sources:
        for mapping in source.mappings:
            if mapping.path and mapping.label not in table:
                table[mapping.label] = mapping.path
    return table


# ---------------------------------------------------------------------------
# Label → value resolution
# ---------------------------------------------------------------------------

def _squash(text: str) -> str:
    return " ".join(text.split()).lower()


def lookup_label_path(label: str, table: Mapping[str, str]) -> Optional[str]:
    """Exact label, then case-insensitive label, then whitespace-normalized substring."""
    if label in table:
        return table[label]

    lowered = label.lower()
    for candidate, path in table.items():
        if candidate.lower() == lowered:
            return path

    wanted = _squash(label)
    if not wanted:
        return None
    for candidate, path in table.items():
        squashed = _squash(candidate)
        if squashed and (wanted in squashed or squashed in wanted):
            return path
    return None


def resolve_label_value(
    payload: Mapping[str, Any],
    label: str,
    table: Mapping[str, str],
    *,
    max_depth: Optional[int] = None,
) -> Any:
    """Value shown under a text-template label, or None.

    A dotted path that does not resolve is retried with its trailing
    sub-paths; after that the whole payload is searched by label.
    """
    path = lookup_label_path(label, table)
    if path:
        value = resolve_path(payload, path)
        if value is None:
            for candidate in trailing_subpaths(path):
                value = resolve_path(payload, candidate)
                if value is not None:
                    logger.debug("formatter.subpath_hit", extra={"label": label, "path": candidate})
                    break
        if value is not None:
            return value
    return find_by_label(payload, label, max_depth=max_depth)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def is_eset_alert(payload: Mapping[str, Any], alert_name: str) -> bool:
    if "eset" in (alert_name or "").lower():
        return True
    return any(payload.get(key) == marker for key, marker in _ESET_DEVICE_MARKERS.items())


def _header(alert: ExtractedAlert) -> list[ReportSection]:
    return [
        ReportSection(value=alert.alert_name),
        ReportSection(value=alert.date_time),
        ReportSection(value=alert.description),
    ]


def _field_mapping_sections(payload: Mapping[str, Any], template: AlertFormatTemplate) -> list[ReportSection]:
    # Labels are always shown, resolved or not.
    return [
        ReportSection(label=m.label, value=to_text(resolve_path(payload, m.path)))
        for m in template.field_mappings
    ]


def _is_time_occurred_label(label: str) -> bool:
    return "time" in label.lower() and _OCCURRED_RE.search(label) is not None


def _text_template_sections(
    payload: Mapping[str, Any],
    alert: ExtractedAlert,
    template: AlertFormatTemplate,
    sources: Sequence[MappingSource],
    max_depth: Optional[int],
) -> list[ReportSection]:
    table = build_mapping_table(sources)
    sections = [ReportSection(value=alert.alert_name)]

    for line in template.expected_format[1:]:
        label = line.strip()
        if not label:
            continue
        if _is_time_occurred_label(label):
            sections.append(ReportSection(value=alert.date_time))
        elif label.lower() == "description":
            sections.append(ReportSection(value=alert.description))
        else:
            value = resolve_label_value(payload, label, table, max_depth=max_depth)
            sections.append(ReportSection(label=label, value=to_text(value)))
    return sections


def _eset_sections(payload: Mapping[str, Any]) -> list[ReportSection]:
    sections: list[ReportSection] = []
    for mapping in ESET_FIELD_MAPPINGS:
        value = to_text(resolve_path(payload, mapping.path))
        if value:
            sections.append(ReportSection(label=mapping.label, value=value))
    return sections


def _generic_sections(alert: ExtractedAlert) -> list[ReportSection]:
    return [
        ReportSection(label=field.label, value=to_text(field.value))
        for field in order_fields(alert.fields, alert.alert_name)
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def format_report(
    payload: Mapping[str, Any],
    alert: ExtractedAlert,
    match: Optional[TemplateMatch] = None,
    mapping_sources: Optional[Sequence[MappingSource]] = None,
    *,
    max_depth: Optional[int] = None,
) -> FormatResult:
    """Render the report for one alert.

    Args:
        payload: Raw alert JSON object. Not modified.
        alert: Header and canonical fields extracted from the payload.
        match: Selected template, if any.
        mapping_sources: Label lookup layers, highest precedence first;
            defaults to default_mapping_sources(template).
        max_depth: Depth bound for label searches; defaults to
            Settings.search_max_depth.
    """
    template = match.template if match else None
    if mapping_sources is None:
        mapping_sources = default_mapping_sources(template)

    if template is not None and template.field_mappings:
        strategy = ReportStrategy.FIELD_MAPPINGS
        sections = _header(alert) + _field_mapping_sections(payload, template)
    elif template is not None and template.expected_format:
        strategy = ReportStrategy.TEXT_TEMPLATE
        sections = _text_template_sections(payload, alert, template, mapping_sources, max_depth)
    elif is_eset_alert(payload, alert.alert_name):
        strategy = ReportStrategy.ESET
        sections = _header(alert) + _eset_sections(payload)
    else:
        strategy = ReportStrategy.GENERIC
        sections = _header(alert) + _generic_sections(alert)

    logger.debug("formatter.strategy", extra={"strategy": strategy.value, "sections": len(sections)})
    return FormatResult(
        text=render_report(sections),
        strategy=strategy,
        category=classify_alert(alert.fields, alert.alert_name),
        template_identifier=template.alert_identifier if template else None,
        match_score=match.score if match else None,
        sections=sections,
    )
