"""Integration tests for routes API."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import ExternalServiceError
from app.dependencies import get_routing_service
from app.main import app
from app.schemas.geo import Coordinate
from app.services.routing_service import RoutingService
from app.utils.geometry import encode_polyline

TRIP = {
    "origin": {"lat": 28.61, "lng": 77.20},
    "destination": {"lat": 28.70, "lng": 77.30},
}


@pytest.fixture
def mock_directions_response():
    """Mock Google Directions response."""
    points = [
        Coordinate(lat=28.61, lng=77.20),
        Coordinate(lat=28.655, lng=77.24),
        Coordinate(lat=28.70, lng=77.30),
    ]
    return {
        "status": "OK",
        "routes": [
            {
                "overview_polyline": {"points": encode_polyline(points)},
                "legs": [
                    {
                        "distance": {"value": 15200, "text": "15.2 km"},
                        "duration": {"value": 1860, "text": "31 mins"},
                        "steps": [{"html_instructions": "Head <b>north</b>"}],
                    }
                ],
            }
        ],
    }


@pytest.fixture
def configured_routing_service() -> RoutingService:
    """Routing service with a provider key, served to the API."""
    service = RoutingService()
    service.api_key = "test-key"
    app.dependency_overrides[get_routing_service] = lambda: service
    return service


def test_optimize_route_fallback(client: TestClient):
    """Without a provider key the built-in optimiser answers."""
    response = client.post("/api/v1/routes/optimize", json=TRIP)

    assert response.status_code == 200
    data = response.json()
    assert data["optimized"] is False
    assert data["distance"] == pytest.approx(13.98, abs=0.01)
    assert data["duration"] == pytest.approx(24.67, abs=0.02)
    assert data["safety_score"] == 91
    assert data["geometry"]["type"] == "LineString"
    assert data["geometry"]["coordinates"][0] == [77.20, 28.61]
    assert "GOOGLE_MAPS_API_KEY" in data["message"]


def test_optimize_route_fallback_with_waypoints(client: TestClient):
    """Waypoints are kept in order and an explicit zero traffic factor is used."""
    response = client.post(
        "/api/v1/routes/optimize",
        json={**TRIP, "waypoints": [{"lat": 28.68, "lng": 77.22}], "traffic_factor": 0},
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["route"]) == 3
    assert data["route"][1]["lat"] == 28.68
    assert data["safety_score"] == 95


def test_optimize_route_invalid_traffic_factor(client: TestClient):
    response = client.post("/api/v1/routes/optimize", json={**TRIP, "traffic_factor": 2})

    assert response.status_code == 422


def test_optimize_route_from_provider(
    client: TestClient, configured_routing_service, mock_directions_response
):
    """Provider routes are decoded and summarised."""
    with patch.object(
        configured_routing_service, "get_directions", new_callable=AsyncMock
    ) as mock_directions:
        mock_directions.return_value = mock_directions_response

        response = client.post("/api/v1/routes/optimize", json=TRIP)

    assert response.status_code == 200
    data = response.json()
    assert data["optimized"] is True
    assert data["distance"] == 15.2
    assert data["duration"] == 31.0
    assert len(data["route"]) == 3
    assert data["steps"] == [
        {"distance": "15.2 km", "duration": "31 mins", "instructions": ["Head <b>north</b>"]}
    ]
    assert data["message"] is None
    mock_directions.assert_called_once()


def test_optimize_route_provider_failure_falls_back(client: TestClient, configured_routing_service):
    """Provider errors degrade to the built-in optimiser."""
    with patch.object(
        configured_routing_service, "get_directions", new_callable=AsyncMock
    ) as mock_directions:
        mock_directions.side_effect = ExternalServiceError("Directions provider returned ZERO_RESULTS")

        response = client.post("/api/v1/routes/optimize", json=TRIP)

    assert response.status_code == 200
    assert response.json()["optimized"] is False
    assert response.json()["safety_score"] == 91


def test_create_optimization(client: TestClient):
    """A new record holds the route, alternatives and score."""
    response = client.post(
        "/api/v1/routes/optimizations",
        json={**TRIP, "trip_id": "trip-1", "driver_id": "driver-7", "seed": 3},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "active"
    assert data["trip_id"] == "trip-1"
    assert data["driver_id"] == "driver-7"
    assert data["optimized_route"]["safety_score"] == 91
    assert len(data["alternative_routes"]) == 3
    assert data["optimization_score"] == 84
    assert data["real_time_updates"] == []

    fetched = client.get(f"/api/v1/routes/optimizations/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == data


def test_create_optimization_at_the_pole(client: TestClient):
    """Alternatives for a polar trip are built instead of failing validation."""
    response = client.post(
        "/api/v1/routes/optimizations",
        json={
            "origin": {"lat": 90.0, "lng": 0.0},
            "destination": {"lat": 89.999, "lng": 10.0},
            "seed": 5,
        },
    )

    assert response.status_code == 201
    assert len(response.json()["alternative_routes"]) == 3


def test_create_optimization_seed_is_reproducible(client: TestClient):
    payload = {**TRIP, "seed": 11, "alternatives": 4}

    first = client.post("/api/v1/routes/optimizations", json=payload).json()
    second = client.post("/api/v1/routes/optimizations", json=payload).json()

    assert first["id"] != second["id"]
    assert first["alternative_routes"] == second["alternative_routes"]
    assert len(first["alternative_routes"]) == 4


def test_active_trip_is_reoptimised(client: TestClient):
    """A second request for an active trip updates the same record."""
    first = client.post("/api/v1/routes/optimizations", json={**TRIP, "trip_id": "trip-9"}).json()
    client.patch(
        f"/api/v1/routes/optimizations/{first['id']}/updates",
        json={"location": {"lat": 28.63, "lng": 77.22}, "traffic_condition": "heavy"},
    )

    second = client.post(
        "/api/v1/routes/optimizations", json={**TRIP, "trip_id": "trip-9", "traffic_factor": 0.9}
    ).json()

    assert second["id"] == first["id"]
    assert second["optimized_route"]["traffic_factor"] == 0.9
    assert len(second["real_time_updates"]) == 1


def test_get_unknown_optimization(client: TestClient):
    response = client.get("/api/v1/routes/optimizations/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_realtime_updates(client: TestClient):
    """Updates are appended in chronological order only."""
    record = client.post("/api/v1/routes/optimizations", json=TRIP).json()
    url = f"/api/v1/routes/optimizations/{record['id']}/updates"

    first = client.patch(
        url,
        json={
            "location": {"lat": 28.63, "lng": 77.22},
            "traffic_condition": "heavy",
            "estimated_delay": 4,
            "timestamp": "2026-03-02T08:30:00Z",
        },
    )
    second = client.patch(
        url,
        json={"location": {"lat": 28.66, "lng": 77.25}, "timestamp": "2026-03-02T08:40:00"},
    )
    stale = client.patch(
        url,
        json={"location": {"lat": 28.64, "lng": 77.23}, "timestamp": "2026-03-02T08:35:00Z"},
    )

    assert first.status_code == 200
    assert second.status_code == 200
    updates = second.json()["real_time_updates"]
    assert [u["traffic_condition"] for u in updates] == ["heavy", "normal"]
    assert updates[0]["estimated_delay"] == 4.0

    assert stale.status_code == 422
    assert stale.json()["error"] == "InvalidInputError"


def test_realtime_update_negative_delay(client: TestClient):
    record = client.post("/api/v1/routes/optimizations", json=TRIP).json()

    response = client.patch(
        f"/api/v1/routes/optimizations/{record['id']}/updates",
        json={"location": {"lat": 28.63, "lng": 77.22}, "estimated_delay": -5},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidInputError"


def test_set_status(client: TestClient):
    """Completed trips get a fresh record on the next optimisation."""
    record = client.post("/api/v1/routes/optimizations", json={**TRIP, "trip_id": "trip-3"}).json()

    response = client.patch(
        f"/api/v1/routes/optimizations/{record['id']}/status", json={"status": "completed"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    again = client.post("/api/v1/routes/optimizations", json={**TRIP, "trip_id": "trip-3"}).json()
    assert again["id"] != record["id"]


def test_set_invalid_status(client: TestClient):
    record = client.post("/api/v1/routes/optimizations", json=TRIP).json()

    response = client.patch(
        f"/api/v1/routes/optimizations/{record['id']}/status", json={"status": "paused"}
    )

    assert response.status_code == 422


def test_score_route(client: TestClient):
    response = client.post(
        "/api/v1/routes/score",
        json={
            "route": [TRIP["origin"], TRIP["destination"]],
            "distance": 13.98,
            "estimated_time": 24.67,
            "traffic_factor": 0.3,
            "safety_score": 91,
        },
    )

    assert response.status_code == 200
    assert response.json() == {"optimization_score": 84}
