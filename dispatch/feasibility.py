# dispatch/feasibility.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from drivers.availability import AvailabilityIndex, find_availability_window
from drivers.models import Driver
from drivers.policy import SchedulingPolicy, default_scheduling_policy
from rides.models import Ride
from routing.geo import LatLon, estimate_travel_minutes, haversine_km
from routing.osrm_client import ProviderError
from routing.route_metrics import CancellationToken, RouteMetricsProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeasibilityResult:
    """
    Output of evaluating one driver for one ride.
    """
    is_feasible: bool

    # Diagnostics (why a driver was rejected)
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls) -> FeasibilityResult:
        return cls(True)

    @classmethod
    def rejected(cls, reason: str, error: Optional[Exception] = None) -> FeasibilityResult:
        return cls(False, reason=reason, error=error)

    def __bool__(self) -> bool:
        return self.is_feasible


def can_reach_on_time(
    previous_ride: Optional[Ride],
    next_ride: Ride,
    route_metrics: RouteMetricsProvider,
    policy: Optional[SchedulingPolicy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> FeasibilityResult:
    """
    Can the driver get from the end of `previous_ride` to the start of `next_ride` in time?

      - no previous ride: starts from home base, always reachable
      - previous ride on another date: enough turnaround, always reachable
      - next start not strictly after previous end: overlap, unreachable
      - haversine estimate already too slow: unreachable, no OSRM call
      - otherwise OSRM duration + safety buffer must fit before the next start

    ProviderError propagates; the caller decides what a failed lookup means.
    """
    policy = policy or default_scheduling_policy()

    if previous_ride is None:
        return FeasibilityResult.ok()

    if previous_ride.date != next_ride.date:
        return FeasibilityResult.ok()

    previous_end = previous_ride.end_minutes
    next_start = next_ride.start_minutes

    if next_start <= previous_end:
        return FeasibilityResult.rejected("overlaps previous ride")

    estimated_minutes = estimate_travel_minutes(
        haversine_km(previous_ride.end_point, next_ride.start_point),
        policy.average_speed_kmh,
    )
    if estimated_minutes + previous_end > next_start:
        return FeasibilityResult.rejected("unreachable (straight-line estimate)")

    travel = route_metrics.get_route_metrics(previous_ride.end_point, next_ride.start_point, cancel_token)
    if previous_end + travel.duration_minutes + policy.safety_buffer_minutes <= next_start:
        return FeasibilityResult.ok()

    return FeasibilityResult.rejected("unreachable (road duration + buffer)")


def can_assign(
    driver: Driver,
    ride: Ride,
    previous_ride: Optional[Ride],
    start_location: LatLon,
    availability: AvailabilityIndex,
    route_metrics: RouteMetricsProvider,
    policy: Optional[SchedulingPolicy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> FeasibilityResult:
    """
    Capacity, then availability, then reachability. Cheapest checks first so
    most rejections never touch OSRM.

    `start_location` is where the driver would set off from (previous drop-off
    or home base); reachability only needs the previous ride itself.

    A failed OSRM lookup is reported as infeasible with the error attached.
    """
    if driver.seats < ride.seats:
        return FeasibilityResult.rejected(f"capacity {driver.seats} < {ride.seats}")

    if find_availability_window(availability, driver.id, ride) is None:
        return FeasibilityResult.rejected(f"not available on {ride.date} {ride.start_time}-{ride.end_time}")

    try:
        return can_reach_on_time(previous_ride, ride, route_metrics, policy, cancel_token)
    except ProviderError as exc:
        logger.debug("Reachability lookup failed for driver %s / ride %s: %s", driver.id, ride.id, exc)
        return FeasibilityResult.rejected("routing provider error", error=exc)
