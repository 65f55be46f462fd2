#Purpose: Cheap geometry and clock helpers.
#Great-circle distance (haversine) used as a pre-filter before paying for an OSRM call,
#a naive travel-time estimate from that distance,
#and "HH:MM" parsing into minutes since midnight.
#Pure functions only - no OSRM, no caching, no scheduling rules.

import math
import re
from typing import Tuple

#internal coordinate type :(lat,lon)
LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0
DEFAULT_AVERAGE_SPEED_KMH = 50.0

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


class InputValidationError(ValueError):
    """Raised when an input record (time string, seats, dates...) is malformed."""
    pass


def haversine_km(point_a: LatLon, point_b: LatLon) -> float:
    """
    Great-circle distance between two (lat, lon) points in kilometers.
    """
    lat1, lon1 = point_a
    lat2, lon2 = point_b

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_travel_minutes(distance_km: float, average_speed_kmh: float = DEFAULT_AVERAGE_SPEED_KMH) -> float:
    """
    Straight-line travel time estimate in minutes at a constant average speed.
    Only good enough to reject obviously unreachable rides.
    """
    return (distance_km / average_speed_kmh) * 60


def time_to_minutes(time_str: str) -> int:
    """
    Parse "HH:MM" into minutes since midnight.

    Raises InputValidationError for anything that is not a valid clock time.
    """
    if not isinstance(time_str, str):
        raise InputValidationError(f"Time must be a 'HH:MM' string, got {time_str!r}")

    match = _TIME_PATTERN.match(time_str.strip())
    if not match:
        raise InputValidationError(f"Invalid time format {time_str!r}, expected 'HH:MM'")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InputValidationError(f"Time out of range: {time_str!r}")

    return hours * 60 + minutes
