"""
Purpose: The greedy scheduling orchestrator (single entry point).
What it does:

- validates driver and ride records (malformed ones become diagnostics, never crash the run)
- sorts rides chronologically (date, start time; input order breaks ties)
- for each ride, evaluates every driver (feasibility, then cost) - in parallel if configured
- commits the strictly cheapest feasible driver (first driver in input order wins ties)
- lists rides with no feasible driver as unassigned

Rule: one ride's winner is committed before the next ride is evaluated,
because the next ride's start location depends on it.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from drivers.availability import AvailabilityIndex, index_availability
from drivers.models import AvailabilityWindow, Driver
from drivers.policy import SchedulingPolicy, default_scheduling_policy
from rides.models import Ride
from routing.geo import InputValidationError, LatLon
from routing.osrm_client import ProviderError
from routing.route_metrics import CancellationToken, RouteMetricsProvider, RunCancelledError

from .cost import CostBreakdown, estimate_cost
from .feasibility import FeasibilityResult, can_assign
from .state_machines.driver_state import DriverSchedule
from .state_machines.ride_state import RideStatus, transition_ride_to_assigned, transition_ride_to_unassigned

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Diagnostic:
    """A record the scheduler skipped because it was malformed."""
    record_id: str
    kind: str  # "driver" | "ride" | "availability"
    message: str


@dataclass
class Assignment:
    driver_id: str
    ride_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CandidateEvaluation:
    """
    One driver evaluated for one ride.
    `cost` is set only when the driver is feasible and costable.
    """
    driver: Driver
    start_location: LatLon
    feasibility: FeasibilityResult
    cost: Optional[CostBreakdown] = None

    @property
    def is_candidate(self) -> bool:
        return self.feasibility.is_feasible and self.cost is not None


@dataclass
class ScheduleResult:
    """
    Output of a scheduling run. Every input ride id is either in exactly one
    assignment or in `unassigned_ride_ids`.
    """
    assignments: List[Assignment]
    total_cost: float
    unassigned_ride_ids: List[str]
    diagnostics: List[Diagnostic] = field(default_factory=list)
    status: RunStatus = RunStatus.COMPLETED
    external_calls: int = 0
    ride_costs: Dict[str, CostBreakdown] = field(default_factory=dict)

    def assigned_driver(self, ride_id: str) -> Optional[str]:
        for assignment in self.assignments:
            if ride_id in assignment.ride_ids:
                return assignment.driver_id
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignments": [
                {"driverId": assignment.driver_id, "rideIds": list(assignment.ride_ids)}
                for assignment in self.assignments
            ],
            "totalCost": self.total_cost,
            "unassignedRideIds": list(self.unassigned_ride_ids),
            "status": self.status.value,
            "externalCalls": self.external_calls,
            "diagnostics": [
                {"id": diagnostic.record_id, "kind": diagnostic.kind, "message": diagnostic.message}
                for diagnostic in self.diagnostics
            ],
        }

    def include_rejected(self, rejected: Iterable[Diagnostic]) -> None:
        """
        Fold in records rejected before scheduling (e.g. by a loader).
        A rejected ride is reported unassigned so no ride id goes missing.
        """
        for diagnostic in rejected:
            self.diagnostics.append(diagnostic)
            if diagnostic.kind != "ride" or self.assigned_driver(diagnostic.record_id) is not None:
                continue
            if diagnostic.record_id not in self.unassigned_ride_ids:
                self.unassigned_ride_ids.append(diagnostic.record_id)


def select_best_candidate(evaluations: Sequence[CandidateEvaluation]) -> Optional[CandidateEvaluation]:
    """
    Strictly lowest total cost; on equal cost the earlier driver (input order) wins.
    """
    best: Optional[CandidateEvaluation] = None
    for evaluation in evaluations:
        if not evaluation.is_candidate:
            continue
        if best is None or evaluation.cost.total_cost < best.cost.total_cost:
            best = evaluation
    return best


class GreedyScheduler:
    """
    Assigns rides to drivers one ride at a time, cheapest feasible driver first.
    """
    def __init__(
        self,
        route_metrics: RouteMetricsProvider,
        availability: Iterable[AvailabilityWindow],
        policy: Optional[SchedulingPolicy] = None,
    ):
        self.route_metrics = route_metrics
        self.availability_diagnostics: List[Diagnostic] = []
        self.availability: AvailabilityIndex = index_availability(
            self._validate_availability(availability, self.availability_diagnostics)
        )
        self.policy = policy or default_scheduling_policy()
        self.policy.validate()

    # --- Public API ---

    def optimize(
        self,
        drivers: Sequence[Driver],
        rides: Sequence[Ride],
        cancel_token: Optional[CancellationToken] = None,
    ) -> ScheduleResult:
        cancel_token = cancel_token or CancellationToken(self.policy.run_timeout_seconds)
        calls_before = self.route_metrics.external_calls

        diagnostics: List[Diagnostic] = list(self.availability_diagnostics)
        valid_drivers = self._validate_drivers(drivers, diagnostics)

        ride_status: Dict[str, RideStatus] = {}
        unassigned: List[str] = []
        pending = self._validate_rides(rides, ride_status, unassigned, diagnostics)

        schedules = [DriverSchedule(driver) for driver in valid_drivers]
        assignments: Dict[str, Assignment] = {}
        ride_costs: Dict[str, CostBreakdown] = {}
        total_cost = 0.0
        status = RunStatus.COMPLETED

        executor = ThreadPoolExecutor(max_workers=self.policy.max_workers) if self.policy.max_workers > 1 else None
        try:
            sorted_rides = sorted(pending, key=Ride.sort_key)
            for position, ride in enumerate(sorted_rides):
                if cancel_token.cancelled:
                    status = RunStatus.CANCELLED
                    self._abandon(sorted_rides[position:], ride_status, unassigned)
                    break

                logger.info("Search a driver for ride %s", ride.id)
                evaluations = self._evaluate_candidates(executor, schedules, ride, cancel_token)

                # don't commit a ride whose evaluation may have been cut short
                if cancel_token.cancelled:
                    status = RunStatus.CANCELLED
                    self._abandon(sorted_rides[position:], ride_status, unassigned)
                    break

                best = select_best_candidate(evaluations)
                if best is None:
                    ride_status[ride.id] = transition_ride_to_unassigned(ride.id, ride_status[ride.id])
                    unassigned.append(ride.id)
                    logger.warning("No suitable driver found for ride %s", ride.id)
                    continue

                schedule = next(s for s in schedules if s.driver.id == best.driver.id)
                schedule.accept(ride)
                ride_status[ride.id] = transition_ride_to_assigned(ride.id, ride_status[ride.id])
                assignments.setdefault(best.driver.id, Assignment(best.driver.id)).ride_ids.append(ride.id)
                ride_costs[ride.id] = best.cost
                total_cost += best.cost.total_cost
                logger.info("Driver %s assigned to ride %s (cost %.2f)", best.driver.id, ride.id, best.cost.total_cost)
        finally:
            if executor is not None:
                executor.shutdown(wait=True, cancel_futures=True)

        if status == RunStatus.CANCELLED:
            logger.warning("Scheduling run cancelled, returning %d committed assignments", len(ride_costs))

        result = ScheduleResult(
            assignments=list(assignments.values()),
            total_cost=total_cost,
            unassigned_ride_ids=unassigned,
            diagnostics=diagnostics,
            status=status,
            external_calls=self.route_metrics.external_calls - calls_before,
            ride_costs=ride_costs,
        )
        logger.info(
            "Scheduling %s: %d assigned, %d unassigned, total cost %.2f, %d OSRM calls",
            status.value, len(ride_costs), len(unassigned), total_cost, result.external_calls,
        )
        return result

    # --- Candidate evaluation ---

    def _evaluate_candidates(
        self,
        executor: Optional[ThreadPoolExecutor],
        schedules: List[DriverSchedule],
        ride: Ride,
        cancel_token: CancellationToken,
    ) -> List[CandidateEvaluation]:
        # results come back in driver order whatever order the workers finish in
        if executor is None:
            return [self._evaluate_candidate(schedule, ride, cancel_token) for schedule in schedules]

        futures = [executor.submit(self._evaluate_candidate, schedule, ride, cancel_token) for schedule in schedules]
        return [future.result() for future in futures]

    def _evaluate_candidate(
        self,
        schedule: DriverSchedule,
        ride: Ride,
        cancel_token: CancellationToken,
    ) -> CandidateEvaluation:
        driver = schedule.driver
        start_location = schedule.start_location

        try:
            feasibility = can_assign(
                driver,
                ride,
                schedule.previous_ride,
                start_location,
                self.availability,
                self.route_metrics,
                self.policy,
                cancel_token,
            )
            if not feasibility:
                logger.debug("Driver %s rejected for ride %s: %s", driver.id, ride.id, feasibility.reason)
                return CandidateEvaluation(driver, start_location, feasibility)

            cost = estimate_cost(driver, ride, start_location, self.route_metrics, self.policy, cancel_token)
        except ProviderError as exc:
            logger.debug("Cost unavailable for driver %s / ride %s: %s", driver.id, ride.id, exc)
            return CandidateEvaluation(driver, start_location, FeasibilityResult.rejected("cost unavailable", exc))
        except RunCancelledError as exc:
            return CandidateEvaluation(driver, start_location, FeasibilityResult.rejected("cancelled", exc))

        return CandidateEvaluation(driver, start_location, feasibility, cost)

    # --- Validation / bookkeeping helpers ---

    @staticmethod
    def _validate_drivers(drivers: Sequence[Driver], diagnostics: List[Diagnostic]) -> List[Driver]:
        valid: List[Driver] = []
        seen = set()
        for driver in drivers:
            try:
                driver.validate()
            except InputValidationError as exc:
                logger.warning("Skipping driver %s: %s", driver.id, exc)
                diagnostics.append(Diagnostic(str(driver.id), "driver", str(exc)))
                continue
            if driver.id in seen:
                logger.warning("Skipping duplicate driver %s", driver.id)
                diagnostics.append(Diagnostic(driver.id, "driver", "duplicate driver id"))
                continue
            seen.add(driver.id)
            valid.append(driver)
        return valid

    @staticmethod
    def _validate_availability(
        windows: Iterable[AvailabilityWindow],
        diagnostics: List[Diagnostic],
    ) -> List[AvailabilityWindow]:
        valid: List[AvailabilityWindow] = []
        for window in windows:
            try:
                window.validate()
            except InputValidationError as exc:
                logger.warning("Skipping availability window of %s: %s", window.driver_id, exc)
                diagnostics.append(Diagnostic(f"{window.driver_id}@{window.date}", "availability", str(exc)))
                continue
            valid.append(window)
        return valid

    @staticmethod
    def _validate_rides(
        rides: Sequence[Ride],
        ride_status: Dict[str, RideStatus],
        unassigned: List[str],
        diagnostics: List[Diagnostic],
    ) -> List[Ride]:
        valid: List[Ride] = []
        for ride in rides:
            if ride.id in ride_status:
                logger.warning("Skipping duplicate ride %s", ride.id)
                diagnostics.append(Diagnostic(ride.id, "ride", "duplicate ride id"))
                continue
            ride_status[ride.id] = RideStatus.PENDING
            try:
                ride.validate()
            except InputValidationError as exc:
                logger.warning("Ride %s is malformed, leaving it unassigned: %s", ride.id, exc)
                diagnostics.append(Diagnostic(str(ride.id), "ride", str(exc)))
                ride_status[ride.id] = transition_ride_to_unassigned(ride.id, ride_status[ride.id])
                unassigned.append(ride.id)
                continue
            valid.append(ride)
        return valid

    @staticmethod
    def _abandon(rides: Sequence[Ride], ride_status: Dict[str, RideStatus], unassigned: List[str]) -> None:
        for ride in rides:
            ride_status[ride.id] = transition_ride_to_unassigned(ride.id, ride_status[ride.id])
            unassigned.append(ride.id)


def optimize_driver_scheduling(
    drivers: Sequence[Driver],
    rides: Sequence[Ride],
    availability: Iterable[AvailabilityWindow],
    route_metrics: RouteMetricsProvider,
    policy: Optional[SchedulingPolicy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> ScheduleResult:
    """
    Convenience wrapper: build a GreedyScheduler and run it once.
    """
    return GreedyScheduler(route_metrics, availability, policy).optimize(drivers, rides, cancel_token)
