"""
Drivers domain package.

Public API:
- Domain models: Driver, AvailabilityWindow
- Availability lookup: index_availability, find_availability_window
- Tunables: SchedulingPolicy, default_scheduling_policy
"""
from .models import AvailabilityWindow, Driver
from .availability import find_availability_window, index_availability
from .policy import SchedulingPolicy, default_scheduling_policy

__all__ = [
    "Driver",
    "AvailabilityWindow",
    "index_availability",
    "find_availability_window",
    "SchedulingPolicy",
    "default_scheduling_policy",
]
