"""
Purpose: Core data models for the drivers domain.
What it does:
Defines a Driver (capacity, fuel cost, home base) and the dated time windows
in which that driver can be scheduled. Both are read-only for a whole run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List

from routing.geo import InputValidationError, LatLon, time_to_minutes


def parse_date(value: Any) -> date:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise InputValidationError(f"Invalid date {value!r}, expected 'YYYY-MM-DD'") from exc


def parse_coordinates(value: Any) -> LatLon:
    try:
        lat, lon = value
        return (float(lat), float(lon))
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"Invalid coordinates {value!r}, expected [lat, lon]") from exc


def check_coordinates(value: Any, label: str) -> None:
    """A point already on a model must be a (lat, lon) pair of numbers."""
    try:
        lat, lon = value
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"{label}: invalid coordinates {value!r}, expected (lat, lon)") from exc
    for part in (lat, lon):
        if isinstance(part, bool) or not isinstance(part, (int, float)) or math.isnan(part):
            raise InputValidationError(f"{label}: invalid coordinates {value!r}, expected (lat, lon)")


@dataclass(frozen=True)
class Driver:
    """
    A driver as the scheduler sees it.
    """
    id: str
    seats: int
    fuel_cost_per_km: float
    home: LatLon

    def validate(self) -> None:
        if not self.id:
            raise InputValidationError("Driver id is required")
        if self.seats < 0:
            raise InputValidationError(f"Driver {self.id}: numberOfSeats must be >= 0")
        if self.fuel_cost_per_km < 0:
            raise InputValidationError(f"Driver {self.id}: fuelCost must be >= 0")
        check_coordinates(self.home, f"Driver {self.id}")

    @classmethod
    def new(
        cls,
        driver_id: str,
        lat: float,
        lon: float,
        seats: int = 4,
        fuel_cost_per_km: float = 0.0,
    ) -> Driver:
        driver = cls(
            id=str(driver_id),
            seats=int(seats),
            fuel_cost_per_km=float(fuel_cost_per_km),
            home=(float(lat), float(lon)),
        )
        driver.validate()
        return driver

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Driver:
        """
        Build from a loader record:
        {"driverId", "numberOfSeats", "fuelCost", "city_coords": [lat, lon]}
        """
        try:
            driver = cls(
                id=str(record["driverId"]),
                seats=int(record["numberOfSeats"]),
                fuel_cost_per_km=float(record["fuelCost"]),
                home=parse_coordinates(record["city_coords"]),
            )
        except InputValidationError:
            raise
        except KeyError as exc:
            raise InputValidationError(f"Driver record missing field {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise InputValidationError(f"Driver record has invalid values: {exc}") from exc
        driver.validate()
        return driver


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    One day on which a driver works, between start and end ("HH:MM").
    """
    driver_id: str
    date: date
    start: str
    end: str

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end)

    def validate(self) -> None:
        if not self.driver_id:
            raise InputValidationError("Availability driverId is required")
        if not isinstance(self.date, date):
            raise InputValidationError(f"Availability of {self.driver_id}: date must be a calendar date, got {self.date!r}")
        # both raise on malformed "HH:MM"
        if self.end_minutes <= self.start_minutes:
            raise InputValidationError(
                f"Availability of {self.driver_id} on {self.date}: end {self.end} is not after start {self.start}"
            )

    def contains(self, ride_date: date, start_minutes: int, end_minutes: int) -> bool:
        return (
            self.date == ride_date
            and start_minutes >= self.start_minutes
            and end_minutes <= self.end_minutes
        )

    @classmethod
    def new(cls, driver_id: str, on: Any, start: str, end: str) -> AvailabilityWindow:
        window = cls(driver_id=str(driver_id), date=parse_date(on), start=start, end=end)
        window.validate()
        return window

    @classmethod
    def from_driver_record(cls, record: Dict[str, Any]) -> List[AvailabilityWindow]:
        """
        Expand {"driverId", "availability": [{"date", "start", "end"}, ...]}
        into windows sorted by date.
        """
        try:
            driver_id = record["driverId"]
            windows = [
                cls.new(driver_id, slot["date"], slot["start"], slot["end"])
                for slot in record["availability"]
            ]
        except KeyError as exc:
            raise InputValidationError(f"Availability record missing field {exc}") from exc
        return sorted(windows, key=lambda window: (window.date, window.start_minutes))
