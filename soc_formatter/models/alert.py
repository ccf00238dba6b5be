"""
Alert models — canonical attributes pulled out of a raw alert payload.

The raw payload itself is never modelled: it stays a plain dict[str, Any]
and is probed by path or label. ExtractedAlert is rebuilt from scratch for
every payload and discarded once the report is rendered.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AlertCategory(str, Enum):
    DOMAIN = "domain"
    NETWORK = "network"
    GENERIC = "generic"


class ExtractedFields(BaseModel):
    """Network / domain attributes, copied from the payload without transformation."""

    source_ip: Optional[Any] = None
    source_host: Optional[Any] = None
    source_port: Optional[Any] = None
    destination_ip: Optional[Any] = None
    destination_host: Optional[Any] = None
    destination_port: Optional[Any] = None
    request_effective_tld: Optional[Any] = None   # e.g. "xyz" for recently registered domains
    domain_creation_time: Optional[Any] = None


class ExtractedAlert(BaseModel):
    alert_name: str = "Unknown Alert"
    event_name: str = ""
    description: str = ""
    tenant_name: str = ""
    is_allowed_tenant: bool = False
    date_time: str = ""                  # "M/D/YY, h:mm AM|PM" in the display timezone
    time_occurred: Optional[str] = None  # ISO string, allowed tenants only
    fields: ExtractedFields = Field(default_factory=ExtractedFields)
