"""Pytest configuration and fixtures."""

import os
from datetime import datetime
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment
os.environ["APP_ENV"] = "test"
os.environ["GOOGLE_MAPS_API_KEY"] = ""  # Routes use the fallback optimiser unless overridden
os.environ["REDIS_URL"] = "redis://localhost:6399/15"
os.environ["RATE_LIMIT_ENABLED"] = "false"  # Disable rate limiting in tests

from app.main import app
from app.repositories.route_repository import get_route_repository
from app.schemas.geo import Coordinate


@pytest.fixture(autouse=True)
def clean_route_repository() -> Generator[None, None, None]:
    """Start every test with an empty route optimisation store."""
    get_route_repository().clear()
    yield
    get_route_repository().clear()


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Create a test client."""
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def delhi_origin() -> Coordinate:
    """Connaught Place, New Delhi."""
    return Coordinate(lat=28.61, lng=77.20)


@pytest.fixture
def delhi_destination() -> Coordinate:
    """A point ~14 km north-east of the origin."""
    return Coordinate(lat=28.70, lng=77.30)


@pytest.fixture
def monday_rush_hour() -> datetime:
    """Monday 2 March 2026, 08:30."""
    return datetime(2026, 3, 2, 8, 30)


@pytest.fixture
def monday_night() -> datetime:
    """Monday 2 March 2026, 23:00."""
    return datetime(2026, 3, 2, 23, 0)
