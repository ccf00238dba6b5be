"""
Field extraction — raw alert payload → ExtractedAlert.

Pulls the report header (alert name, description, display time) and the
canonical network / domain attributes out of a Stellar Cyber style payload.
Values are copied as-is; only the timestamp is reformatted.

Tenant gating: the raw occurrence time (time_occurred) is only exposed for
tenants on the configured allow-list.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from soc_formatter.config import get_settings
from soc_formatter.engine.paths import resolve_path
from soc_formatter.models.alert import ExtractedAlert, ExtractedFields

logger = logging.getLogger(__name__)

UNKNOWN_ALERT = "Unknown Alert"

# Highest priority first.
_TIMESTAMP_FIELDS = ("timestamp_utc", "orig_timestamp_utc", "alert_time", "timestamp", "orig_timestamp")
_UTC_TIMESTAMP_FIELDS = ("timestamp_utc", "orig_timestamp_utc")

# Epoch values at or above this are milliseconds (year 5138 in seconds).
_EPOCH_MS_CUTOFF = 1e11


def parse_payload(text: str) -> dict[str, Any]:
    """Parse raw alert JSON.

    Raises:
        ValueError: If the text is not valid JSON or not a JSON object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON format: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid JSON format: expected an object, got {type(data).__name__}"
        )
    return data


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _first_present(payload: Mapping[str, Any], *paths: str) -> Any:
    for path in paths:
        value = resolve_path(payload, path)
        if _present(value):
            return value
    return None


# ---------------------------------------------------------------------------
# Header fields
# ---------------------------------------------------------------------------

def alert_name_of(payload: Mapping[str, Any], default: str = UNKNOWN_ALERT) -> str:
    value = _first_present(payload, "xdr_event.display_name", "event_name")
    return str(value) if value is not None else default


def event_name_of(payload: Mapping[str, Any]) -> str:
    value = _first_present(payload, "xdr_event.name", "event_name")
    return str(value) if value is not None else ""


def is_allowed_tenant(tenant_name: str, allowed_tenants: Sequence[str]) -> bool:
    """Case-insensitive substring test against the allow-list."""
    lowered = (tenant_name or "").lower()
    return any(t and t.lower() in lowered for t in allowed_tenants)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def _from_epoch(number: float) -> Optional[datetime]:
    seconds = number / 1000 if abs(number) >= _EPOCH_MS_CUTOFF else number
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an epoch (seconds or milliseconds) or ISO-8601 timestamp.

    Naive ISO strings are taken as UTC. Returns None when unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return _from_epoch(float(text))
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def select_timestamp(payload: Mapping[str, Any]) -> tuple[Optional[str], Optional[datetime]]:
    """Return (field name, parsed value) of the highest-priority usable timestamp."""
    for field in _TIMESTAMP_FIELDS:
        parsed = parse_timestamp(payload.get(field))
        if parsed is not None:
            return field, parsed
    return None, None


def _display_zone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("extract.unknown_timezone", extra={"timezone": name})
        return None


def format_display_time(moment: Optional[datetime], timezone_name: Optional[str] = None) -> str:
    """Format as "M/D/YY, h:mm AM|PM"; host local time unless a zone is given."""
    if moment is None:
        return ""
    zone = _display_zone(timezone_name)
    try:
        local = moment.astimezone(zone) if zone else moment.astimezone()
    except (OverflowError, OSError, ValueError):
        logger.warning("extract.display_time_out_of_range", extra={"timestamp": moment.isoformat()})
        return ""
    hour = local.hour % 12 or 12
    meridiem = "PM" if local.hour >= 12 else "AM"
    return f"{local.month}/{local.day}/{local:%y}, {hour}:{local.minute:02d} {meridiem}"


def to_iso_utc(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing "Z"."""
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Network / domain fields
# ---------------------------------------------------------------------------

def _detected_values(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Pick TLD / domain-creation values out of the index-aligned detected_* arrays."""
    names = payload.get("detected_fields")
    values = payload.get("detected_values")
    found: dict[str, Any] = {}
    if not isinstance(names, list) or not isinstance(values, list):
        return found

    for idx, name in enumerate(names):
        if not isinstance(name, str) or idx >= len(values) or not _present(values[idx]):
            continue
        if "effective_tld" in name:
            found["request_effective_tld"] = values[idx]
        if "domain_creation" in name:
            found["domain_creation_time"] = values[idx]
    return found


def extract_fields(payload: Mapping[str, Any]) -> ExtractedFields:
    values: dict[str, Any] = {}

    tld = resolve_path(payload, "metadata.request.effective_tld")
    if _present(tld):
        values["request_effective_tld"] = tld

    srcip, srcip_host = payload.get("srcip"), payload.get("srcip_host")
    if _present(srcip) or _present(srcip_host):
        values["source_ip"] = srcip if _present(srcip) else None
        values["source_host"] = srcip_host if _present(srcip_host) else srcip
    if _present(payload.get("srcport")):
        values["source_port"] = payload["srcport"]

    dstip, dstip_host = payload.get("dstip"), payload.get("dstip_host")
    if _present(dstip):
        values["destination_ip"] = dstip
    if _present(dstip_host) or _present(dstip):
        values["destination_host"] = dstip_host if _present(dstip_host) else dstip
    if _present(payload.get("dstport")):
        values["destination_port"] = payload["dstport"]

    creation = _first_present(
        payload, "metadata.request.domain_creation", "metadata.response.domain_creation"
    )
    if creation is not None:
        values["domain_creation_time"] = creation

    # The detected_* arrays win over the nested metadata values.
    values.update(_detected_values(payload))
    return ExtractedFields(**values)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def extract_alert(
    payload: Mapping[str, Any],
    *,
    allowed_tenants: Optional[Sequence[str]] = None,
    timezone_name: Optional[str] = None,
) -> ExtractedAlert:
    """Derive the report header and canonical fields from a raw payload.

    Args:
        payload: Raw alert JSON object. Not modified.
        allowed_tenants: Tenant allow-list; defaults to Settings.allowed_tenants.
        timezone_name: Display zone; defaults to Settings.display_timezone.
    """
    settings = get_settings()
    if allowed_tenants is None:
        allowed_tenants = settings.allowed_tenants
    if timezone_name is None:
        timezone_name = settings.display_timezone

    tenant_name = payload.get("tenant_name")
    tenant_name = str(tenant_name) if _present(tenant_name) else ""
    allowed = is_allowed_tenant(tenant_name, allowed_tenants)

    description = resolve_path(payload, "xdr_event.description")
    field, moment = select_timestamp(payload)

    time_occurred: Optional[str] = None
    if allowed:
        raw_utc = _first_present(payload, *_UTC_TIMESTAMP_FIELDS)
        if raw_utc is not None:
            time_occurred = str(raw_utc)
        elif moment is not None:
            try:
                time_occurred = to_iso_utc(moment)
            except (OverflowError, ValueError):
                logger.warning("extract.time_occurred_out_of_range", extra={"timestamp_field": field})

    alert = ExtractedAlert(
        alert_name=alert_name_of(payload),
        event_name=event_name_of(payload),
        description=str(description) if _present(description) else "",
        tenant_name=tenant_name,
        is_allowed_tenant=allowed,
        date_time=format_display_time(moment, timezone_name),
        time_occurred=time_occurred,
        fields=extract_fields(payload),
    )
    logger.debug(
        "extract.complete",
        extra={"alert_name": alert.alert_name, "timestamp_field": field, "allowed_tenant": allowed},
    )
    return alert
