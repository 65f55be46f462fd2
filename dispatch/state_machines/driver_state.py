from dataclasses import dataclass, field
from typing import List, Optional

from drivers.models import Driver
from rides.models import Ride
from routing.geo import LatLon


class DriverStateException(Exception):
    """Raised when a ride cannot legally be appended to a driver's schedule."""
    pass


@dataclass
class DriverSchedule:
    """
    Rides committed to one driver during a run, in assignment order
    (which is chronological, since rides are processed chronologically).
    Only ever grows.
    """
    driver: Driver
    rides: List[Ride] = field(default_factory=list)

    @property
    def previous_ride(self) -> Optional[Ride]:
        return self.rides[-1] if self.rides else None

    @property
    def start_location(self) -> LatLon:
        """Where the driver sets off for the next ride: last drop-off, or home base."""
        previous = self.previous_ride
        return previous.end_point if previous else self.driver.home

    def accept(self, ride: Ride) -> None:
        """
        Called when the scheduler commits `ride` to this driver.
        Rejects rides that would overlap an already committed ride on the same date.
        """
        if self.driver.seats < ride.seats:
            raise DriverStateException(
                f"Driver {self.driver.id} does not have enough seats. Has {self.driver.seats}, ride {ride.id} needs {ride.seats}"
            )

        for committed in self.rides:
            if committed.date != ride.date:
                continue
            if ride.start_minutes < committed.end_minutes and committed.start_minutes < ride.end_minutes:
                raise DriverStateException(
                    f"Ride {ride.id} overlaps ride {committed.id} already scheduled for driver {self.driver.id}"
                )

        self.rides.append(ride)
