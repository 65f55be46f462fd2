"""
Purpose: Central configuration for driver scheduling.
What it does:

Stores all tunable constants used by feasibility, cost and the scheduler loop:

DRIVER_HOURLY_COST = 30
AVERAGE_SPEED_KMH = 50
SAFETY_BUFFER_MINUTES = 10

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Central configuration for the greedy scheduler.
    """

    # --- Cost model ---
    # Labor cost per hour, charged for driving to the ride plus the ride itself.
    driver_hourly_cost: float = 30.0

    # --- Reachability ---
    # Straight-line speed used for the cheap haversine pre-filter.
    average_speed_kmh: float = 50.0

    # Slack required between arriving at a ride and its start time.
    safety_buffer_minutes: int = 10

    # --- OSRM courtesy throttle ---
    # Minimum gap between two consecutive OSRM calls. 0 disables it (tests, local OSRM).
    provider_min_interval_seconds: float = 1.0

    # --- Concurrency ---
    # Workers evaluating candidate drivers for one ride. 1 evaluates inline.
    max_workers: int = 4

    # --- Cancellation ---
    # Abort outstanding work and return a partial result after this many seconds.
    run_timeout_seconds: Optional[float] = None

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.driver_hourly_cost < 0:
            raise ValueError("driver_hourly_cost must be >= 0")

        if self.average_speed_kmh <= 0:
            raise ValueError("average_speed_kmh must be > 0")

        if self.safety_buffer_minutes < 0:
            raise ValueError("safety_buffer_minutes must be >= 0")

        if self.provider_min_interval_seconds < 0:
            raise ValueError("provider_min_interval_seconds must be >= 0")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.run_timeout_seconds is not None and self.run_timeout_seconds <= 0:
            raise ValueError("run_timeout_seconds must be > 0 when set")


def default_scheduling_policy() -> SchedulingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = SchedulingPolicy()
    p.validate()
    return p
