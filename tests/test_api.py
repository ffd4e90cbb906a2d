from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.main import api_app
from backend.services.analysis_service import analysis_service
from core.state import state


@pytest.fixture
def client(monkeypatch):
    # Keep verdicts away from the DB queue and Socket.IO during tests
    publish = MagicMock()
    monkeypatch.setattr(analysis_service, "publish", publish)
    monkeypatch.setattr(state, "protection_active", True)
    analysis_service.cache.clear()
    c = TestClient(api_app)
    c.publish = publish
    yield c
    analysis_service.cache.clear()


def test_ping(client):
    assert client.get("/api/ping").json() == {"status": "pong"}

def test_analyze_trusted(client):
    res = client.post("/api/analyze", json={"domain": "google.com", "source": "extension"})
    assert res.status_code == 200
    body = res.json()
    assert body["riskScore"] == 0
    assert body["action"] == "ALLOW"
    assert body["category"] == "trusted"
    assert body["fullTarget"] == "https://google.com"
    verdict = client.publish.call_args[0][0]
    assert verdict.domain == "google.com"
    assert client.publish.call_args[1]["source"] == "extension"

def test_analyze_unauthorized_banking(client):
    body = client.post("/api/analyze", json={"domain": "sbi.com"}).json()
    assert body["riskScore"] == 95
    assert body["action"] == "HARD-BLOCK"
    assert body["threatLevel"] == "critical"
    assert body["category"] == "unauthorized_banking"

def test_analyze_without_target_is_client_error(client):
    assert client.post("/api/analyze", json={}).status_code == 400
    assert client.post("/api/analyze", json={"domain": "  "}).status_code == 400
    client.publish.assert_not_called()

def test_analyze_deep_scan(client, monkeypatch):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="login verify account password"))
    monkeypatch.setattr(analysis_service.content_scanner, "transport", transport)
    body = client.post("/api/analyze", json={"domain": "example.com", "deepScan": True}).json()
    assert body["riskScore"] == 100
    assert body["action"] == "HARD-BLOCK"
    assert body["features"]["deepScan"] is True
    assert "phishing_content" in body["category"]

def test_analyze_degrades_on_engine_failure(client, monkeypatch):
    monkeypatch.setattr(analysis_service.engine, "analyze_target", MagicMock(side_effect=RuntimeError("boom")))
    res = client.post("/api/analyze", json={"domain": "sbi.com"})
    assert res.status_code == 200
    assert res.json()["riskScore"] == 0
    assert res.json()["threatLevel"] == "low"
    assert res.json()["action"] == "ALLOW"

def test_dns_query_returns_action_only(client):
    res = client.post("/api/dns-query", json={"domain": "sbi.com", "deviceHash": "esp-01"})
    assert res.json() == {"action": "HARD-BLOCK"}
    assert client.publish.call_args[1] == {"source": "esp32", "device_hash": "esp-01"}

def test_dns_query_fails_open_when_paused(client, monkeypatch):
    monkeypatch.setattr(state, "protection_active", False)
    assert client.post("/api/dns-query", json={"domain": "sbi.com"}).json() == {"action": "ALLOW"}
    client.publish.assert_not_called()
    assert len(analysis_service.cache) == 0

def test_dns_query_without_domain(client):
    res = client.post("/api/dns-query", json={})
    assert res.status_code == 400
    assert res.json() == {"action": "ALLOW"}

def test_batch(client):
    res = client.post("/api/analyze/batch", json={"domains": ["google.com", "sbi.com", ""]})
    assert [r["action"] for r in res.json()] == ["ALLOW", "HARD-BLOCK"]
    assert client.publish.call_count == 2

def test_toggle_protection(client, monkeypatch):
    broadcast = AsyncMock()
    monkeypatch.setattr("backend.routers.api.broadcast_status", broadcast)
    assert client.post("/api/toggle-protection", json={"active": False}).json() == {"active": False}
    assert client.get("/api/status").json() == {"active": False}
    broadcast.assert_awaited_once_with(False)

def test_cache_endpoints(client):
    client.post("/api/dns-query", json={"domain": "amaz0n.com"})
    stats = client.get("/api/cache/stats").json()
    assert stats["size"] == 1
    assert stats["capacity"] == 2000
    assert client.post("/api/cache/clear").json()["status"] == "success"
    assert client.get("/api/cache/stats").json()["size"] == 0

def test_rules_reload(client):
    res = client.post("/api/rules/reload")
    assert res.status_code == 200
    assert res.json()["status"] == "success"

def test_rules_reload_rejects_mistyped_file(client, monkeypatch, tmp_path):
    path = tmp_path / "rules.json"
    path.write_text('{"thresholds": {"hard_block": "90"}}')
    monkeypatch.setattr(analysis_service.engine.rule_store, "path", str(path))

    res = client.post("/api/rules/reload")
    assert res.status_code == 422
    body = client.post("/api/dns-query", json={"domain": "amaz0n.com"}).json()
    assert body["action"] == "SOFT-BLOCK"

def test_logs_and_stats_read_from_db(client, monkeypatch):
    import datetime
    from backend.services import data_service

    monkeypatch.setattr(data_service, "_cache", {"stats": None, "expiry": 0})
    monkeypatch.setattr(data_service, "db_fetch_recent_logs", lambda limit, action: [{
        "timestamp": datetime.datetime(2024, 1, 1, 12, 0), "domain": "sbi.com", "risk_score": 95,
        "threat_level": "critical", "action": "HARD-BLOCK", "category": "unauthorized_banking",
        "source": "esp32",
    }])
    monkeypatch.setattr(data_service, "db_fetch_action_counts", lambda: [
        {"action": "ALLOW", "total": 7}, {"action": "HARD-BLOCK", "total": 2},
    ])

    logs = client.get("/api/logs?limit=5").json()
    assert logs[0]["domain"] == "sbi.com"
    assert logs[0]["time"] == "2024-01-01T12:00:00"
    assert client.get("/api/stats").json() == {
        "total_analyzed": 9, "total_allowed": 7, "soft_blocked": 0, "total_blocked": 2,
    }
    assert client.get("/api/logs?limit=0").status_code == 400
