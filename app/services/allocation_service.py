"""Driver allocation across predicted demand."""

import logging
from typing import List, Sequence

from app.core.exceptions import InvalidInputError
from app.schemas.demand import DriverAllocation, LocationDemand
from app.utils.scoring import round_score

logger = logging.getLogger(__name__)


def optimize_driver_allocation(
    predictions: Sequence[LocationDemand], available_drivers: int
) -> List[DriverAllocation]:
    """Distribute available drivers proportionally to demand.

    Each location gets round(available * demand / total demand) drivers with a
    floor of one. Locations are rounded independently, so the total may drift
    above or below available_drivers.

    Args:
        predictions: Demand per location, in priority order
        available_drivers: Size of the driver pool

    Returns:
        One allocation per prediction, in input order

    Raises:
        InvalidInputError: negative pool, or total demand is not positive
    """
    if available_drivers < 0:
        raise InvalidInputError("Available drivers cannot be negative")
    if not predictions:
        return []

    total_demand = sum(p.demand for p in predictions)
    if total_demand <= 0:
        raise InvalidInputError("Total demand must be positive to allocate drivers")

    allocation = [
        DriverAllocation(
            location=p.location,
            allocated_drivers=max(1, round_score(available_drivers * p.demand / total_demand)),
        )
        for p in predictions
    ]

    allocated = sum(a.allocated_drivers for a in allocation)
    if allocated != available_drivers:
        logger.info(
            f"Allocated {allocated} drivers from a pool of {available_drivers} "
            f"across {len(allocation)} locations"
        )
    return allocation
