"""
Field-order classification — decide how extracted fields are laid out.

Domain-type alerts (DNS, recently registered domains) lead with the domain
fields; network-type alerts (connections, SMB, anomalies) lead with source
then destination fields. Anything else uses the fixed priority order.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from soc_formatter.models.alert import AlertCategory, ExtractedFields

_DOMAIN_NAME_HINTS = ("domain", "dns")
_NETWORK_NAME_HINTS = ("anomaly", "smb", "connection")


class FieldSpec(NamedTuple):
    key: str
    label: str
    priority: int
    category: str  # "domain" | "network"


class OrderedField(NamedTuple):
    key: str
    label: str
    value: Any


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec("request_effective_tld", "Request Effective TLD", 1, "domain"),
    FieldSpec("domain_creation_time", "Domain Creation Time", 4, "domain"),
    FieldSpec("source_ip", "Source IP", 1, "network"),
    FieldSpec("source_host", "Source Host", 2, "network"),
    FieldSpec("source_port", "Source Port", 3, "network"),
    FieldSpec("destination_ip", "Destination IP", 1, "network"),
    FieldSpec("destination_host", "Destination Host", 2, "network"),
    FieldSpec("destination_port", "Destination Port", 3, "network"),
)


def _has(fields: ExtractedFields, key: str) -> bool:
    value = getattr(fields, key)
    return value is not None and value != ""


def is_domain_alert(fields: ExtractedFields, alert_name: str) -> bool:
    name = (alert_name or "").lower()
    return (
        any(hint in name for hint in _DOMAIN_NAME_HINTS)
        or _has(fields, "request_effective_tld")
        or _has(fields, "domain_creation_time")
    )


def is_network_alert(fields: ExtractedFields, alert_name: str) -> bool:
    name = (alert_name or "").lower()
    keys = ("source_ip", "destination_ip", "source_port", "destination_port")
    return any(_has(fields, k) for k in keys) or any(hint in name for hint in _NETWORK_NAME_HINTS)


def classify_alert(fields: ExtractedFields, alert_name: str) -> AlertCategory:
    """Domain wins when an alert qualifies as both."""
    if is_domain_alert(fields, alert_name):
        return AlertCategory.DOMAIN
    if is_network_alert(fields, alert_name):
        return AlertCategory.NETWORK
    return AlertCategory.GENERIC


def _specs(category: str, prefix: str = "") -> list[FieldSpec]:
    return [s for s in FIELD_SPECS if s.category == category and s.key.startswith(prefix)]


def order_fields(fields: ExtractedFields, alert_name: str) -> list[OrderedField]:
    """Fields to display, in display order; empty values and repeats dropped."""
    domain = is_domain_alert(fields, alert_name)
    network = is_network_alert(fields, alert_name)

    ordered: list[FieldSpec] = []
    if domain:
        ordered += _specs("domain")
        if network:
            ordered += _specs("network")
    elif network:
        ordered += _specs("network", "source")
        ordered += _specs("network", "destination")
    else:
        ordered += sorted(FIELD_SPECS, key=lambda s: s.priority)

    result: list[OrderedField] = []
    seen: set[str] = set()
    for spec in ordered:
        if spec.key in seen or not _has(fields, spec.key):
            continue
        seen.add(spec.key)
        result.append(OrderedField(spec.key, spec.label, getattr(fields, spec.key)))
    return result
