"""
Whitelist models — structured rules derived from analyst free text.

Every optional rule field is a wildcard when unset. Rules are append-only
records owned by the caller's store; the matcher only reads them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class WhitelistRule(BaseModel):
    alert_signature: str = Field(
        default="",
        validation_alias=AliasChoices("alert_signature", "alertSignature", "alertTitleOrSignature"),
    )
    process_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("process_name", "processName")
    )
    device_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("device_name", "deviceName")
    )
    tenant_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("tenant_name", "tenantName")
    )
    ip_address: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ip_address", "ipAddress")
    )
    reason: str = ""
    raw_text: str = Field(default="", validation_alias=AliasChoices("raw_text", "rawText"))
    applies_to_all_alerts: bool = Field(
        default=False,
        validation_alias=AliasChoices("applies_to_all_alerts", "appliesToAllAlerts"),
    )
    # Ordered, not de-duplicated.
    match_tokens: list[str] = Field(
        default_factory=list,
        max_length=20,
        validation_alias=AliasChoices("match_tokens", "matchTokens"),
    )


class WhitelistMatchContext(BaseModel):
    """The slice of an alert the matcher compares rules against."""

    alert_name: str = ""
    description: str = ""
    host_name: str = ""
    process_path: str = ""
    ip: Optional[str] = None


class WhitelistDecision(BaseModel):
    matched: bool
    reason: str = ""
    rule: Optional[WhitelistRule] = None


class SheetWhitelistEntry(BaseModel):
    """One data row of the analysts' whitelist spreadsheet."""

    alert_name: str = ""
    action: str = ""
    value: str = ""
    confirmation: str = ""
    case_status: str = ""      # Resolved / Confirmed / Whitelisted
    verification: str = ""     # True Positive / False Positive / To Be Confirmed
    remediation: str = ""      # Remediated / Not Remediated

    @property
    def note(self) -> str:
        parts = [self.alert_name, self.action, self.value, self.confirmation]
        return " - ".join(p for p in parts if p)
