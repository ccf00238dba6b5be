"""Tests for soc_formatter/models/whitelist.py."""

import pytest
from pydantic import ValidationError

from soc_formatter.models.engine_io import WhitelistCheckInput
from soc_formatter.models.whitelist import (
    SheetWhitelistEntry,
    WhitelistDecision,
    WhitelistMatchContext,
    WhitelistRule,
)


class TestWhitelistRule:
    def test_defaults_are_wildcards(self):
        rule = WhitelistRule()
        assert rule.alert_signature == ""
        assert rule.process_name is None
        assert rule.device_name is None
        assert rule.tenant_name is None
        assert rule.ip_address is None
        assert rule.applies_to_all_alerts is False
        assert rule.match_tokens == []

    def test_stored_record_with_camel_case_keys(self):
        rule = WhitelistRule.model_validate(
            {
                "alertTitleOrSignature": "Port Scan alert",
                "processName": "nmap.exe",
                "deviceName": "WS-01",
                "tenantName": "selene",
                "ipAddress": "10.0.0.1",
                "reason": "Approved scanner",
                "rawText": "Port Scan alert\nApproved scanner",
                "appliesToAllAlerts": True,
                "matchTokens": ["scan", "nmap.exe"],
            }
        )
        assert rule.alert_signature == "Port Scan alert"
        assert rule.process_name == "nmap.exe"
        assert rule.device_name == "WS-01"
        assert rule.tenant_name == "selene"
        assert rule.ip_address == "10.0.0.1"
        assert rule.raw_text.startswith("Port Scan")
        assert rule.applies_to_all_alerts is True
        assert rule.match_tokens == ["scan", "nmap.exe"]

    def test_alert_signature_alias(self):
        assert WhitelistRule.model_validate({"alertSignature": "X"}).alert_signature == "X"

    def test_more_than_twenty_tokens_rejected(self):
        with pytest.raises(ValidationError):
            WhitelistRule(match_tokens=[f"token{i}" for i in range(21)])

    def test_duplicate_tokens_allowed(self):
        assert WhitelistRule(match_tokens=["a", "a"]).match_tokens == ["a", "a"]


class TestMatchModels:
    def test_context_defaults(self):
        ctx = WhitelistMatchContext()
        assert ctx.alert_name == ""
        assert ctx.ip is None

    def test_negative_decision(self):
        decision = WhitelistDecision(matched=False)
        assert decision.reason == ""
        assert decision.rule is None

    def test_check_input_accepts_stored_rules(self):
        request = WhitelistCheckInput(
            alert_data={"event_name": "x"},
            rules=[{"processName": "a.exe"}],
        )
        assert request.rules[0].process_name == "a.exe"


class TestSheetWhitelistEntry:
    def test_note_skips_empty_parts(self):
        entry = SheetWhitelistEntry(alert_name="Port Scan", action="Allow", confirmation="ok")
        assert entry.note == "Port Scan - Allow - ok"

    def test_status_not_part_of_note(self):
        entry = SheetWhitelistEntry(alert_name="Port Scan", case_status="Resolved")
        assert entry.note == "Port Scan"

    def test_blank_entry_note(self):
        assert SheetWhitelistEntry().note == ""
