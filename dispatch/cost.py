#Purpose: Cost model (the "how much does this driver cost for this ride" layer).
#Fuel: (deadhead to pickup + ride leg) km * driver's fuel cost per km
#Labor: (deadhead duration + scheduled ride duration) hours * hourly cost
#Both legs come from the cached OSRM route metrics.
#Output: a cost breakdown the scheduler compares across candidates.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from drivers.models import Driver
from drivers.policy import SchedulingPolicy, default_scheduling_policy
from rides.models import Ride
from routing.geo import LatLon
from routing.route_metrics import CancellationToken, RouteMetricsProvider

DRIVER_HOURLY_COST = SchedulingPolicy.driver_hourly_cost


@dataclass(frozen=True)
class CostBreakdown:
    fuel_cost: float
    labor_cost: float

    @property
    def total_cost(self) -> float:
        return self.fuel_cost + self.labor_cost


def estimate_cost(
    driver: Driver,
    ride: Ride,
    start_location: LatLon,
    route_metrics: RouteMetricsProvider,
    policy: Optional[SchedulingPolicy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> CostBreakdown:
    """
    Cost of `driver` taking `ride` when setting off from `start_location`.

    Raises ProviderError if either leg cannot be looked up.
    """
    policy = policy or default_scheduling_policy()

    to_start = route_metrics.get_route_metrics(start_location, ride.start_point, cancel_token)
    ride_leg = route_metrics.get_route_metrics(ride.start_point, ride.end_point, cancel_token)

    total_distance_km = to_start.distance_km + ride_leg.distance_km
    fuel_cost = total_distance_km * driver.fuel_cost_per_km

    # the ride itself is billed on its scheduled duration, not the OSRM one
    total_minutes = to_start.duration_minutes + ride.duration_minutes
    labor_cost = (total_minutes / 60) * policy.driver_hourly_cost

    return CostBreakdown(fuel_cost=fuel_cost, labor_cost=labor_cost)
