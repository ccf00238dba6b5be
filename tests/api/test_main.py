"""Tests for soc_formatter/api/main.py — HTTP surface over the engine."""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from soc_formatter.api.main import app

PAYLOAD = {
    "xdr_event": {"display_name": "Port Scan", "description": "Scan from host"},
    "srcip": "10.1.2.3",
    "dstip": "203.0.113.9",
}

TWINKLE_TRAY_NOTE = (
    "ESET Protect (ESET Inspect Alert): Common AutoStart registry modified by an unpopular process [A0103a]\n"
    "Process Name:\n"
    "%LOCALAPPDATA%\\programs\\twinkle-tray\\twinkle tray.exe\n"
    "Sir Justin confirmed to whitelist the twinkle tray software only for this device UC-DR-JPADLAN."
)


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_format_with_stored_template(client):
    template = {
        "alertIdentifier": "port scan",
        "fieldMappings": [{"label": "Target", "path": "dstip"}],
    }
    response = await client.post("/api/v1/format", json={"payload": PAYLOAD, "templates": [template]})
    assert response.status_code == 200
    body = response.json()
    assert body["strategy"] == "field_mappings"
    assert body["template_identifier"] == "port scan"
    assert body["match_score"] == 1.0
    assert body["text"].endswith("Target\n203.0.113.9")


@pytest.mark.asyncio
async def test_format_raw_json_without_templates(client):
    response = await client.post("/api/v1/format", json={"raw_json": json.dumps(PAYLOAD)})
    assert response.status_code == 200
    body = response.json()
    assert body["strategy"] == "generic"
    assert body["category"] == "network"
    assert body["text"].startswith("Port Scan")
    assert body["match_score"] is None


@pytest.mark.asyncio
async def test_format_malformed_json_is_400(client):
    response = await client.post("/api/v1/format", json={"raw_json": "{broken"})
    assert response.status_code == 400
    assert "Invalid JSON format" in response.json()["detail"]


@pytest.mark.asyncio
async def test_format_without_payload_is_400(client):
    response = await client.post("/api/v1/format", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_format_duplicate_global_labels_is_422(client):
    mappings = [{"label": "Host", "path": "a"}, {"label": "Host", "path": "b"}]
    response = await client.post("/api/v1/format", json={"payload": PAYLOAD, "global_mappings": mappings})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_parse_whitelist(client):
    response = await client.post("/api/v1/whitelist/parse", json={"text": TWINKLE_TRAY_NOTE})
    assert response.status_code == 200
    body = response.json()
    assert body["device_name"] == "UC-DR-JPADLAN"
    assert body["process_name"].endswith("twinkle tray.exe")
    assert body["ip_address"] is None
    assert body["applies_to_all_alerts"] is False


@pytest.mark.asyncio
async def test_parse_empty_whitelist_text_is_400(client):
    response = await client.post("/api/v1/whitelist/parse", json={"text": "   "})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_check_whitelist(client):
    rule = {"processName": "twinkle tray.exe", "deviceName": "UC-DR-JPADLAN", "reason": "brightness tool"}
    alert = {
        "xdr_event": {"display_name": "Common AutoStart registry modified"},
        "host": {"name": "UC-DR-JPADLAN"},
        "process": {"executable": "C:\\Users\\jp\\twinkle tray.exe"},
    }
    response = await client.post("/api/v1/whitelist/check", json={"alert_data": alert, "rules": [rule]})
    assert response.status_code == 200
    body = response.json()
    assert body["matched"] is True
    assert body["reason"] == "brightness tool"


@pytest.mark.asyncio
async def test_check_whitelist_no_rules(client):
    response = await client.post("/api/v1/whitelist/check", json={"alert_data": PAYLOAD})
    assert response.status_code == 200
    assert response.json()["matched"] is False


@pytest.mark.asyncio
async def test_import_sheet(client):
    csv_text = (
        "Alert Name,Action,Detail,Confirmation\n"
        "Resolved - False Positive,,,\n"
        "Port Scan,Allow scanner,10.20.30.40,ok\n"
    )
    response = await client.post("/api/v1/whitelist/import-sheet", json={"csv_text": csv_text})
    assert response.status_code == 200
    body = response.json()
    assert len(body["entries"]) == 1
    assert body["entries"][0]["case_status"] == "Resolved"
    assert body["entries"][0]["verification"] == "False Positive"
    assert body["rules"][0]["ip_address"] == "10.20.30.40"


@pytest.mark.asyncio
async def test_learn_template(client):
    sample = {"event_name": "Port Scan", "srcip": "203.0.113.50"}
    response = await client.post(
        "/api/v1/templates/learn",
        json={"sample_payload": sample, "expected_format": "Port Scan\n\nSource IP\n203.0.113.50"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["alert_identifier"] == "port scan"
    assert body["field_mappings"] == [
        {"label": "Source IP", "path": "srcip", "sample_value": "203.0.113.50"}
    ]


@pytest.mark.asyncio
async def test_learn_template_without_name_is_400(client):
    response = await client.post(
        "/api/v1/templates/learn",
        json={"sample_payload": {"srcip": "1.2.3.4"}, "expected_format": "Source IP\n1.2.3.4"},
    )
    assert response.status_code == 400
    assert "alert name" in response.json()["detail"]
