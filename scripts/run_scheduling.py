import argparse
import csv
import json
import logging
import os
from typing import List, Tuple

import pandas as pd
from dotenv import load_dotenv

from dispatch.scheduler import Diagnostic, ScheduleResult, optimize_driver_scheduling
from drivers.models import AvailabilityWindow, Driver
from drivers.policy import SchedulingPolicy
from rides.models import Ride
from routing.distance_cache import DistanceCache
from routing.geo import InputValidationError
from routing.osrm_client import OSRMClient
from routing.route_metrics import CancellationToken, RequestThrottle, RouteMetricsProvider

logger = logging.getLogger("run_scheduling")

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _resolve(path: str) -> str:
    # Resolve relative paths against the repo root so the script runs from anywhere.
    return path if os.path.isabs(path) else os.path.join(BASE_DIR, path)


def _read_records(path: str) -> list:
    with open(_resolve(path), "r", encoding="utf-8") as f:
        return json.load(f)


def load_drivers(path: str = "sampledata/drivers.json") -> Tuple[List[Driver], List[Diagnostic]]:
    drivers, rejected = [], []
    for record in _read_records(path):
        try:
            drivers.append(Driver.from_record(record))
        except InputValidationError as exc:
            logger.warning("Skipping driver record %s: %s", record.get("driverId"), exc)
            rejected.append(Diagnostic(str(record.get("driverId")), "driver", str(exc)))
    return drivers, rejected


def load_rides(path: str = "sampledata/rides.json") -> Tuple[List[Ride], List[Diagnostic]]:
    """Malformed ride records come back as diagnostics so they can be reported unassigned."""
    rides, rejected = [], []
    for record in _read_records(path):
        try:
            rides.append(Ride.from_record(record))
        except InputValidationError as exc:
            logger.warning("Ride record %s is malformed: %s", record.get("_id"), exc)
            rejected.append(Diagnostic(str(record.get("_id")), "ride", str(exc)))
    return rides, rejected


def load_availability(path: str = "sampledata/availability.json") -> Tuple[List[AvailabilityWindow], List[Diagnostic]]:
    windows, rejected = [], []
    for record in _read_records(path):
        try:
            windows.extend(AvailabilityWindow.from_driver_record(record))
        except InputValidationError as exc:
            logger.warning("Skipping availability of %s: %s", record.get("driverId"), exc)
            rejected.append(Diagnostic(str(record.get("driverId")), "availability", str(exc)))
    return windows, rejected


def print_report(result: ScheduleResult) -> None:
    print("Greedy Algorithm Results")
    table = pd.DataFrame(
        [{"driverId": a.driver_id, "rideIds": ", ".join(a.ride_ids)} for a in result.assignments],
        columns=["driverId", "rideIds"],
    )
    print(table.to_string(index=False) if not table.empty else "(no assignments)")
    print("UnAssigned Rides:", result.unassigned_ride_ids)
    print(f"Total Cost: {result.total_cost:.2f}")
    print(f"Status: {result.status.value} | OSRM calls: {result.external_calls}")
    for diagnostic in result.diagnostics:
        print(f"[SKIPPED] {diagnostic.kind} {diagnostic.record_id}: {diagnostic.message}")


def write_results(result: ScheduleResult, output_path: str) -> None:
    with open(output_path, "w", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["ride_id", "driver_id", "fuel_cost", "labor_cost", "total_cost"])
        for assignment in result.assignments:
            for ride_id in assignment.ride_ids:
                cost = result.ride_costs[ride_id]
                writer.writerow([
                    ride_id,
                    assignment.driver_id,
                    round(cost.fuel_cost, 2),
                    round(cost.labor_cost, 2),
                    round(cost.total_cost, 2),
                ])
        for ride_id in result.unassigned_ride_ids:
            writer.writerow([ride_id, "UNASSIGNED", "", "", ""])


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Greedy driver scheduling over OSRM road metrics")
    parser.add_argument("--drivers", default="sampledata/drivers.json")
    parser.add_argument("--rides", default="sampledata/rides.json")
    parser.add_argument("--availability", default="sampledata/availability.json")
    parser.add_argument("--cache", default=os.getenv("DISTANCE_CACHE_FILE", "distanceCache.json"))
    parser.add_argument("--output", default=None, help="optional CSV of per-ride assignments")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def build_policy() -> SchedulingPolicy:
    timeout = os.getenv("SCHEDULER_TIMEOUT_SECONDS")
    policy = SchedulingPolicy(
        provider_min_interval_seconds=float(os.getenv("OSRM_MIN_INTERVAL_SECONDS", "1.0")),
        max_workers=int(os.getenv("SCHEDULER_MAX_WORKERS", "4")),
        run_timeout_seconds=float(timeout) if timeout else None,
    )
    policy.validate()
    return policy


def run_scheduling() -> Tuple[ScheduleResult, RouteMetricsProvider]:
    load_dotenv()
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # 1. Load Data
    drivers, rejected_drivers = load_drivers(args.drivers)
    rides, rejected_rides = load_rides(args.rides)
    availability, rejected_availability = load_availability(args.availability)
    logger.info("Loaded %d drivers, %d rides, %d availability windows", len(drivers), len(rides), len(availability))

    # 2. Configure System
    policy = build_policy()
    route_metrics = RouteMetricsProvider(
        OSRMClient(),
        cache=DistanceCache(_resolve(args.cache)),
        throttle=RequestThrottle(policy.provider_min_interval_seconds),
    )

    # 3. Run the greedy scheduler
    result = optimize_driver_scheduling(
        drivers,
        rides,
        availability,
        route_metrics,
        policy=policy,
        cancel_token=CancellationToken(policy.run_timeout_seconds),
    )
    result.include_rejected(rejected_drivers + rejected_rides + rejected_availability)

    # 4. Report
    print_report(result)
    if args.output:
        write_results(result, _resolve(args.output))
        print(f"Results written to '{args.output}'.")

    return result, route_metrics


if __name__ == "__main__":
    run_scheduling()
