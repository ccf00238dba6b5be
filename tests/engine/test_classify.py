"""Tests for soc_formatter/engine/classify.py — alert category and field order."""

from soc_formatter.engine.classify import (
    classify_alert,
    is_domain_alert,
    is_network_alert,
    order_fields,
)
from soc_formatter.models.alert import AlertCategory, ExtractedFields

NETWORK = ExtractedFields(
    source_ip="10.1.2.3",
    source_host="ws-01",
    source_port=51515,
    destination_ip="203.0.113.9",
    destination_host="203.0.113.9",
    destination_port=443,
)

DOMAIN = ExtractedFields(request_effective_tld="xyz", domain_creation_time="2025-01-28")


class TestClassification:
    def test_domain_by_fields(self):
        assert is_domain_alert(DOMAIN, "Anything") is True
        assert classify_alert(DOMAIN, "Anything") == AlertCategory.DOMAIN

    def test_domain_by_name(self):
        assert is_domain_alert(ExtractedFields(), "Suspicious DNS Query") is True

    def test_network_by_fields(self):
        assert is_network_alert(NETWORK, "Anything") is True
        assert classify_alert(NETWORK, "Anything") == AlertCategory.NETWORK

    def test_network_by_name(self):
        assert is_network_alert(ExtractedFields(), "SMB Brute Force") is True

    def test_domain_wins_over_network(self):
        both = ExtractedFields(source_ip="10.0.0.1", request_effective_tld="xyz")
        assert classify_alert(both, "Connection to new domain") == AlertCategory.DOMAIN

    def test_generic(self):
        assert classify_alert(ExtractedFields(), "Malware Detected") == AlertCategory.GENERIC

    def test_empty_string_is_absent(self):
        assert classify_alert(ExtractedFields(source_ip=""), "Malware Detected") == AlertCategory.GENERIC


class TestOrderFields:
    def test_network_source_then_destination(self):
        labels = [f.label for f in order_fields(NETWORK, "Outbound Anomaly")]
        assert labels == [
            "Source IP",
            "Source Host",
            "Source Port",
            "Destination IP",
            "Destination Host",
            "Destination Port",
        ]

    def test_domain_fields_lead(self):
        fields = DOMAIN.model_copy(update={"source_ip": "10.0.0.1"})
        labels = [f.label for f in order_fields(fields, "Recently Registered Domain")]
        assert labels[:2] == ["Request Effective TLD", "Domain Creation Time"]
        assert labels[2:] == ["Source IP"]

    def test_domain_only_alert_shows_no_network_block(self):
        labels = [f.label for f in order_fields(DOMAIN, "Recently Registered Domain")]
        assert labels == ["Request Effective TLD", "Domain Creation Time"]

    def test_empty_values_are_dropped(self):
        fields = ExtractedFields(source_ip="10.0.0.1", source_port=None, destination_ip="")
        ordered = order_fields(fields, "Connection Anomaly")
        assert [(f.key, f.value) for f in ordered] == [("source_ip", "10.0.0.1")]

    def test_generic_alert_has_nothing_to_order(self):
        assert order_fields(ExtractedFields(), "Malware Detected") == []
