"""Tests for the /health endpoint."""

from fastapi.testclient import TestClient


def test_health_returns_ok(client: TestClient) -> None:
    """GET /health should return 200 with status 'ok'."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"


def test_app_exposes_ledger_routes(client: TestClient) -> None:
    paths = set(client.app.openapi()["paths"])
    assert {
        "/api/cases",
        "/api/cases/{case_id}",
        "/api/cases/{case_id}/open",
        "/api/inventory",
        "/api/inventory/{record_id}/sell",
        "/api/inventory/sell-all",
        "/api/profile",
    } <= paths
