import threading
from datetime import date

import pytest

from drivers.models import AvailabilityWindow, Driver
from drivers.policy import SchedulingPolicy
from rides.models import Ride
from routing.distance_cache import DistanceCache, RouteMetrics, normalize_key
from routing.geo import haversine_km
from routing.osrm_client import ProviderError
from routing.route_metrics import RouteMetricsProvider

DAY = date(2025, 3, 10)
NEXT_DAY = date(2025, 3, 11)

# Berlin landmarks, (lat, lon)
ALEXANDERPLATZ = (52.5219, 13.4132)
BRANDENBURG_GATE = (52.5163, 13.3777)
CHECKPOINT_CHARLIE = (52.5075, 13.3904)
HAUPTBAHNHOF = (52.5250, 13.3690)
TEMPELHOF = (52.4730, 13.4030)
POTSDAM = (52.3906, 13.0645)
HAMBURG = (53.5511, 9.9937)


class MockOSRM:
    """
    Stand-in for OSRMClient.compute_route.

    Road distance is 1.3x the straight line, driven at 40 km/h, unless a segment
    is given explicitly. Segments listed in `failing` raise ProviderError.
    """
    def __init__(self, segments=None, failing=(), on_call=None):
        self.segments = {normalize_key(a, b): metrics for (a, b), metrics in (segments or {}).items()}
        self.failing = {normalize_key(a, b) for a, b in failing}
        self.on_call = on_call
        self.calls = []
        self._lock = threading.Lock()

    def compute_route(self, coordinates):
        origin, destination = coordinates
        with self._lock:
            self.calls.append((origin, destination))
        if self.on_call:
            self.on_call(len(self.calls))

        key = normalize_key(origin, destination)
        if key in self.failing:
            raise ProviderError(f"mock failure for {origin} -> {destination}")

        if key in self.segments:
            metrics = self.segments[key]
            return {"distance": metrics.distance_km * 1000, "duration": metrics.duration_hours * 3600}

        distance_m = haversine_km(origin, destination) * 1300
        return {"distance": distance_m, "duration": distance_m / (40_000 / 3600)}


@pytest.fixture
def mock_osrm():
    return MockOSRM()


@pytest.fixture
def route_metrics(mock_osrm):
    return RouteMetricsProvider(mock_osrm, cache=DistanceCache(path=None))


@pytest.fixture
def policy():
    # no throttle and inline evaluation unless a test asks otherwise
    return SchedulingPolicy(provider_min_interval_seconds=0, max_workers=1)


def make_driver(driver_id, home=ALEXANDERPLATZ, seats=4, fuel_cost=0.5):
    return Driver.new(driver_id, home[0], home[1], seats=seats, fuel_cost_per_km=fuel_cost)


def make_ride(ride_id, start_time, end_time, start=BRANDENBURG_GATE, end=CHECKPOINT_CHARLIE, seats=1, on=DAY):
    return Ride.new(ride_id, on, start_time, end_time, start, end, seats=seats)


def full_day(driver_id, on=DAY, start="07:00", end="20:00"):
    return AvailabilityWindow.new(driver_id, on, start, end)


def seed(cache, point_a, point_b, distance_km, duration_hours):
    cache.put(point_a, point_b, RouteMetrics(distance_km=distance_km, duration_hours=duration_hours))
