"""Integration tests for health, metrics and request middleware."""

from fastapi.testclient import TestClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.main import app


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_reports_fallback_routing(client: TestClient):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "directions_provider": "fallback"}


def test_request_id_is_propagated(client: TestClient):
    """A caller-supplied request ID is echoed back; otherwise one is generated."""
    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    generated = client.get("/health")

    assert echoed.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]
    assert generated.headers["X-Response-Time"].endswith("ms")


def test_metrics_count_requests_by_route_template(client: TestClient):
    """Record ids are folded into the route template."""
    app.state.metrics.reset()

    client.get("/health")
    client.get("/api/v1/routes/optimizations/abc")
    client.get("/api/v1/routes/optimizations/def")

    metrics = client.get("/metrics").json()

    assert metrics["requests_total"] == 3
    assert metrics["requests_by_endpoint"]["GET /health"]["count"] == 1
    assert metrics["requests_by_endpoint"]["GET /api/v1/routes/optimizations/{record_id}"]["count"] == 2
    assert metrics["requests_by_status"]["404"] == 2
    assert metrics["server_errors"] == 0


def test_metrics_keep_router_prefixes_apart(client: TestClient):
    """Same-named endpoints under different routers are counted separately."""
    app.state.metrics.reset()
    risk = {"weather": 0.2, "traffic": 0.2, "time_of_day": 0.2, "route_complexity": 0.2}

    demand = client.post(
        "/api/v1/demand/predict", json={"location": {"lat": 28.6139, "lng": 77.2090}}
    )
    safety = client.post("/api/v1/safety/predict", json={"risk_factors": risk})
    assert demand.status_code == 201
    assert safety.status_code == 200

    endpoints = client.get("/metrics").json()["requests_by_endpoint"]

    assert endpoints["POST /api/v1/demand/predict"]["count"] == 1
    assert endpoints["POST /api/v1/safety/predict"]["count"] == 1
    assert "POST /predict" not in endpoints


def test_rate_limit_errors_use_slowapi_handler():
    """Throttled requests are answered by slowapi's 429 handler."""
    assert app.exception_handlers[RateLimitExceeded] is _rate_limit_exceeded_handler
