from enum import Enum


class RideStatus(Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    UNASSIGNED = "UNASSIGNED"


class RideStateException(Exception):
    """Raised when an invalid ride transition is attempted."""
    pass


def transition_ride_to_assigned(ride_id: str, status: RideStatus) -> RideStatus:
    """
    Called once the scheduler commits a winning driver for the ride.
    Both outcomes are terminal: a ride is never revisited within a run.
    """
    if status != RideStatus.PENDING:
        raise RideStateException(f"Cannot assign ride {ride_id} from {status}")
    return RideStatus.ASSIGNED


def transition_ride_to_unassigned(ride_id: str, status: RideStatus) -> RideStatus:
    """
    Called when no driver is feasible, the ride record is malformed, or the run was cancelled.
    """
    if status != RideStatus.PENDING:
        raise RideStateException(f"Cannot mark ride {ride_id} unassigned from {status}")
    return RideStatus.UNASSIGNED
