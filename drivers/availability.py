"""
Purpose: Availability lookup for choosing drivers.
What it does:
Groups the availability windows per driver and answers
"does this driver have a window on the ride's date that covers the whole ride?"
"""

from typing import Dict, Iterable, List, Optional

from .models import AvailabilityWindow

AvailabilityIndex = Dict[str, List[AvailabilityWindow]]


def index_availability(windows: Iterable[AvailabilityWindow]) -> AvailabilityIndex:
    """
    driver_id -> windows ordered by date (then start).
    """
    index: AvailabilityIndex = {}

    for window in windows:
        index.setdefault(window.driver_id, []).append(window)

    for driver_windows in index.values():
        driver_windows.sort(key=lambda window: (window.date, window.start_minutes))

    return index


def find_availability_window(availability: AvailabilityIndex, driver_id: str, ride) -> Optional[AvailabilityWindow]:
    """
    Returns the first window of `driver_id` that fully contains the ride, or None.
    A driver with no windows at all is never available.
    """
    start_minutes = ride.start_minutes
    end_minutes = ride.end_minutes

    for window in availability.get(driver_id, []):
        if window.contains(ride.date, start_minutes, end_minutes):
            return window

    return None
