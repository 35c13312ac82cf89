"""Google Directions routing client."""

import asyncio
import hashlib
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
import redis.asyncio as redis

from app.config import get_settings
from app.core.exceptions import ExternalServiceError
from app.schemas.geo import Coordinate
from app.utils.geometry import decode_polyline, simplify_path

logger = logging.getLogger(__name__)
settings = get_settings()

MAX_ROUTE_POINTS = 500


def _format_point(point: Coordinate) -> str:
    return f"{point.lat},{point.lng}"


class RoutingService:
    """Google Directions client with Redis caching."""

    def __init__(self):
        self.base_url = settings.GOOGLE_MAPS_API_URL
        self.api_key = settings.GOOGLE_MAPS_API_KEY
        self.timeout = 15.0
        self.max_retries = 2
        self.cache_ttl = 3600  # 1 hour, traffic-dependent
        self._redis_client: Optional[redis.Redis] = None

    @property
    def enabled(self) -> bool:
        """Whether a provider key is configured."""
        return bool(self.api_key)

    async def _get_redis_client(self) -> Optional[redis.Redis]:
        """Get or create Redis client."""
        if self._redis_client is None:
            try:
                self._redis_client = redis.from_url(
                    settings.REDIS_URL, encoding="utf-8", decode_responses=True
                )
                await self._redis_client.ping()
                logger.info("Redis connection established for directions caching")
            except Exception as e:
                logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
                self._redis_client = None
        return self._redis_client

    def _build_params(
        self, origin: Coordinate, destination: Coordinate, waypoints: Sequence[Coordinate]
    ) -> Dict[str, str]:
        params = {
            "origin": _format_point(origin),
            "destination": _format_point(destination),
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "optimize:true|" + "|".join(_format_point(w) for w in waypoints)
        return params

    def _generate_cache_key(
        self, origin: Coordinate, destination: Coordinate, waypoints: Sequence[Coordinate]
    ) -> str:
        """Generate cache key for a directions request (key excluded)."""
        points = [[p.lat, p.lng] for p in (origin, *waypoints, destination)]
        return f"directions:{hashlib.md5(json.dumps(points).encode()).hexdigest()}"

    async def get_directions(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Optional[Sequence[Coordinate]] = None,
    ) -> Dict[str, Any]:
        """Get directions from Google Directions.

        Args:
            origin: Start point
            destination: End point
            waypoints: Intermediate stops; the provider may reorder them

        Returns:
            Raw Directions JSON with status "OK"

        Raises:
            ExternalServiceError: Provider unconfigured, unavailable or found no route
        """
        if not self.enabled:
            raise ExternalServiceError("Directions provider is not configured")

        waypoints = list(waypoints or [])
        cache_key = self._generate_cache_key(origin, destination, waypoints)
        redis_client = await self._get_redis_client()

        if redis_client:
            try:
                cached = await redis_client.get(cache_key)
                if cached:
                    logger.info(f"Cache HIT for {cache_key}")
                    return json.loads(cached)
                logger.info(f"Cache MISS for {cache_key}")
            except Exception as e:
                logger.warning(f"Redis get error: {str(e)}")

        url = f"{self.base_url}/directions/json"
        params = self._build_params(origin, destination, waypoints)

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params)

                if response.status_code == 200:
                    data = response.json()
                    provider_status = data.get("status")

                    if provider_status == "OK" and data.get("routes"):
                        logger.info(f"Fetched {len(data['routes'])} routes from directions API")
                        if redis_client:
                            try:
                                await redis_client.setex(cache_key, self.cache_ttl, json.dumps(data))
                            except Exception as e:
                                logger.warning(f"Redis set error: {str(e)}")
                        return data

                    if provider_status == "OVER_QUERY_LIMIT" and attempt < self.max_retries - 1:
                        logger.warning("Directions API quota exceeded, retrying")
                        await asyncio.sleep(2**attempt)
                        continue

                    logger.warning(f"Directions API returned status {provider_status}")
                    raise ExternalServiceError(f"Directions provider returned {provider_status}")

                logger.error(f"Directions API error {response.status_code}: {response.text}")
                if response.status_code >= 500 and attempt < self.max_retries - 1:
                    await asyncio.sleep(2**attempt)
                    continue
                raise ExternalServiceError("Directions provider unavailable")

            except ExternalServiceError:
                raise

            except httpx.TimeoutException:
                logger.error(f"Directions API timeout (attempt {attempt + 1})")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2**attempt)
                    continue
                raise ExternalServiceError("Directions provider timeout")

            except httpx.HTTPError as e:
                logger.error(f"Error fetching directions: {str(e)}")
                raise ExternalServiceError(f"Directions error: {str(e)}")

        raise ExternalServiceError("Failed to fetch directions after retries")

    def extract_route_info(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Extract the first route from a Directions response.

        Args:
            data: Directions JSON with at least one route

        Returns:
            Dict with distance_km, duration_min, route points and per-leg steps
        """
        route = data["routes"][0]
        legs: List[Dict[str, Any]] = route.get("legs", [])

        encoded = route.get("overview_polyline", {}).get("points", "")
        points = simplify_path(decode_polyline(encoded), MAX_ROUTE_POINTS) if encoded else []

        return {
            "distance_km": sum(leg["distance"]["value"] for leg in legs) / 1000,
            "duration_min": sum(leg["duration"]["value"] for leg in legs) / 60,
            "route": points,
            "steps": [
                {
                    "distance": leg["distance"]["text"],
                    "duration": leg["duration"]["text"],
                    "instructions": [step.get("html_instructions", "") for step in leg.get("steps", [])],
                }
                for leg in legs
            ],
        }
