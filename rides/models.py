"""
Purpose: Domain model for the Rides capability.
What it does:
- Defines a Ride: identity, date, start/end time of day, pickup/dropoff coords and required seats.
- Validation rules for incoming ride records.

Rule: No OSRM calls, no scheduling logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Tuple

from drivers.models import check_coordinates, parse_coordinates, parse_date
from routing.geo import InputValidationError, LatLon, time_to_minutes


@dataclass(frozen=True)
class Ride:
    """
    A ride request. Immutable input to the scheduler.
    """
    id: str
    date: date
    start_time: str
    end_time: str
    start_point: LatLon
    end_point: LatLon
    seats: int = 1

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def sort_key(self) -> Tuple[date, int]:
        return (self.date, self.start_minutes)

    def validate(self) -> None:
        if not self.id:
            raise InputValidationError("Ride id is required")
        if not isinstance(self.date, date):
            raise InputValidationError(f"Ride {self.id}: date must be a calendar date, got {self.date!r}")
        if self.seats < 0:
            raise InputValidationError(f"Ride {self.id}: numberOfSeats must be >= 0")
        check_coordinates(self.start_point, f"Ride {self.id} startPoint")
        check_coordinates(self.end_point, f"Ride {self.id} endPoint")
        # both raise on malformed "HH:MM"
        if self.end_minutes <= self.start_minutes:
            raise InputValidationError(f"Ride {self.id}: endTime {self.end_time} is not after startTime {self.start_time}")

    @classmethod
    def new(
        cls,
        ride_id: str,
        on: Any,
        start_time: str,
        end_time: str,
        start_point: LatLon,
        end_point: LatLon,
        seats: int = 1,
    ) -> Ride:
        ride = cls(
            id=str(ride_id),
            date=parse_date(on),
            start_time=start_time,
            end_time=end_time,
            start_point=parse_coordinates(start_point),
            end_point=parse_coordinates(end_point),
            seats=int(seats),
        )
        ride.validate()
        return ride

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Ride:
        """
        Build from a loader record:
        {"_id", "date", "startTime", "endTime", "startPoint_coords", "endPoint_coords", "numberOfSeats"}
        """
        try:
            return cls.new(
                record["_id"],
                record["date"],
                record["startTime"],
                record["endTime"],
                record["startPoint_coords"],
                record["endPoint_coords"],
                record.get("numberOfSeats", 1),
            )
        except InputValidationError:
            raise
        except KeyError as exc:
            raise InputValidationError(f"Ride record missing field {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise InputValidationError(f"Ride record has invalid values: {exc}") from exc
