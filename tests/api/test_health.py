from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # In tests neither backing store is configured
    assert data["checks"] == {"database": "not_configured", "redis": "not_configured"}


def test_ready_returns_200_without_database(client: TestClient) -> None:
    resp = client.get("/ready")
    assert resp.status_code == 200
