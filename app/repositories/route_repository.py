"""Route optimisation record repository."""

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.core.exceptions import NotFoundError
from app.schemas.geo import Coordinate
from app.schemas.route import RealTimeUpdate, RouteOptimizationRecord, RouteOption, RouteStatus
from app.services.route_optimizer import append_realtime_update


class RouteOptimizationRepository:
    """In-process store for route optimisation records.

    Stands in for the document store owned by the booking backend. Records
    are immutable; every change stores a new version under the same id.
    """

    def __init__(self):
        self._records: Dict[str, RouteOptimizationRecord] = {}
        self._lock = threading.Lock()

    def create(
        self,
        origin: Coordinate,
        destination: Coordinate,
        optimized_route: RouteOption,
        alternative_routes: List[RouteOption],
        optimization_score: int,
        trip_id: Optional[str] = None,
        driver_id: Optional[str] = None,
    ) -> RouteOptimizationRecord:
        """Create an active record."""
        now = datetime.now(timezone.utc)
        record = RouteOptimizationRecord(
            id=uuid.uuid4().hex,
            trip_id=trip_id,
            driver_id=driver_id,
            origin=origin,
            destination=destination,
            optimized_route=optimized_route,
            alternative_routes=alternative_routes,
            optimization_score=optimization_score,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._records[record.id] = record
        return record

    def get(self, record_id: str) -> RouteOptimizationRecord:
        """Get a record by id.

        Raises:
            NotFoundError: No record with that id
        """
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise NotFoundError("Route optimization not found")
        return record

    def find_active_by_trip(self, trip_id: str) -> Optional[RouteOptimizationRecord]:
        """Most recent active record for a trip, if any."""
        with self._lock:
            matches = [
                r for r in self._records.values() if r.trip_id == trip_id and r.status == "active"
            ]
        return max(matches, key=lambda r: r.updated_at, default=None)

    def replace_route(
        self,
        record_id: str,
        optimized_route: RouteOption,
        alternative_routes: List[RouteOption],
        optimization_score: int,
    ) -> RouteOptimizationRecord:
        """Re-optimise an existing record, keeping its update log."""
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise NotFoundError("Route optimization not found")
            updated = record.model_copy(
                update={
                    "optimized_route": optimized_route,
                    "alternative_routes": alternative_routes,
                    "optimization_score": optimization_score,
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            self._records[record_id] = updated
        return updated

    def append_update(self, record_id: str, update: RealTimeUpdate) -> RouteOptimizationRecord:
        """Append a real-time update to a record's log.

        Raises:
            NotFoundError: No record with that id
            InvalidInputError: Update is older than the last logged one
        """
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise NotFoundError("Route optimization not found")
            updated = record.model_copy(
                update={
                    "real_time_updates": append_realtime_update(record.real_time_updates, update),
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            self._records[record_id] = updated
        return updated

    def set_status(self, record_id: str, status: RouteStatus) -> RouteOptimizationRecord:
        """Move a record to a new status."""
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise NotFoundError("Route optimization not found")
            updated = record.model_copy(
                update={"status": status, "updated_at": datetime.now(timezone.utc)}
            )
            self._records[record_id] = updated
        return updated

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


_repository = RouteOptimizationRepository()


def get_route_repository() -> RouteOptimizationRepository:
    """Process-wide repository (FastAPI dependency)."""
    return _repository
