"""Tests for soc_formatter/engine/template_builder.py — learning templates from samples."""

import pytest

from soc_formatter.engine.report import format_payload
from soc_formatter.engine.template_builder import (
    extract_field_mappings,
    learn_template,
    looks_like_value,
)
from soc_formatter.models.report import ReportStrategy

DESCRIPTION = "A login from an unusual location was observed for this account."

SAMPLE = {
    "xdr_event": {
        "display_name": "Suspicious Login",
        "name": "suspicious_login",
        "description": DESCRIPTION,
    },
    "timestamp": "2025-03-04T09:15:00Z",
    "user": {"name": "jdoe@corp.com"},
    "srcip": "203.0.113.50",
    "host": {"name": "WS-FIN-01"},
    "geo": {"country": "Romania"},
}

REPORT_BODY = f"""Suspicious Login

3/4/25, 9:15 AM

{DESCRIPTION}

User
jdoe@corp.com

Source IP
203.0.113.50

Host
WS-FIN-01

Country
Romania"""

EXPECTED = REPORT_BODY + "\n\nAnalyst Notes\nto be filled in later\n"


class TestLooksLikeValue:
    @pytest.mark.parametrize("line", ["Romania", "a.b", "x/y", "C:\\", "10.0.0.1", "c:\\tmp"])
    def test_values(self, line):
        assert looks_like_value(line)

    @pytest.mark.parametrize("line", ["443", "Host", "User"])
    def test_short_plain_words_are_not_values(self, line):
        assert not looks_like_value(line)


class TestExtractFieldMappings:
    def test_labels_mapped_to_sample_paths(self):
        mappings = extract_field_mappings(SAMPLE, EXPECTED)
        assert [(m.label, m.path, m.sample_value) for m in mappings] == [
            ("User", "user.name", "jdoe@corp.com"),
            ("Source IP", "srcip", "203.0.113.50"),
            ("Host", "host.name", "WS-FIN-01"),
            ("Country", "geo.country", "Romania"),
        ]

    def test_values_missing_from_sample_are_dropped(self):
        labels = [m.label for m in extract_field_mappings(SAMPLE, EXPECTED)]
        assert "Analyst Notes" not in labels

    def test_short_values_are_not_mapped(self):
        sample = dict(SAMPLE, dstport="443")
        text = f"Suspicious Login\n\n{DESCRIPTION}\n\nPort\n443"
        assert extract_field_mappings(sample, text) == []

    def test_long_first_line_is_description_without_sample_description(self):
        sample = {"event_name": "Port Scan", "srcip": "203.0.113.50"}
        long_line = "Many connection attempts to sequential ports were seen from one host."
        text = f"Port Scan\n\n3/4/25, 9:15 AM\n\n{long_line}\n\nSource IP\n203.0.113.50"
        mappings = extract_field_mappings(sample, text)
        assert [(m.label, m.path) for m in mappings] == [("Source IP", "srcip")]

    def test_first_label_wins(self):
        text = "Suspicious Login\n\nHost\nWS-FIN-01\n\nHost\n203.0.113.50"
        mappings = extract_field_mappings(SAMPLE, text)
        assert [(m.label, m.path) for m in mappings] == [("Host", "host.name")]

    def test_value_in_array(self):
        sample = {"event_name": "Beacon", "ips": ["10.0.0.1", "10.0.0.2"]}
        mappings = extract_field_mappings(sample, "Beacon\n\nSecond IP\n10.0.0.2")
        assert mappings[0].path == "ips[1]"

    def test_empty_expected_text(self):
        assert extract_field_mappings(SAMPLE, "") == []


class TestLearnTemplate:
    def test_identity_fields(self):
        template = learn_template(SAMPLE, EXPECTED)
        assert template.alert_identifier == "suspicious login"
        assert template.alert_name == "Suspicious Login"
        assert template.event_name == "suspicious_login"
        assert template.expected_format[0] == "Suspicious Login"
        assert template.expected_format[-1] == "to be filled in later"
        assert len(template.field_mappings) == 4

    def test_event_name_identifier(self):
        template = learn_template({"event_name": "Port Scan"}, "Port Scan")
        assert template.alert_identifier == "port scan"
        assert template.event_name == "Port Scan"

    def test_no_name_raises(self):
        with pytest.raises(ValueError, match="alert name"):
            learn_template({"srcip": "10.0.0.1"}, "Anything")

    def test_learned_template_reproduces_report(self):
        template = learn_template(SAMPLE, EXPECTED)
        result = format_payload(
            SAMPLE, [template], threshold=0.5, allowed_tenants=[], timezone_name="UTC"
        )
        assert result.strategy == ReportStrategy.FIELD_MAPPINGS
        assert result.text == REPORT_BODY
