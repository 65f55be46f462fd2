import pytest

from dispatch.cost import DRIVER_HOURLY_COST, estimate_cost
from drivers.policy import SchedulingPolicy
from routing.distance_cache import DistanceCache
from routing.osrm_client import ProviderError
from routing.route_metrics import RouteMetricsProvider

from .conftest import ALEXANDERPLATZ, BRANDENBURG_GATE, CHECKPOINT_CHARLIE, MockOSRM, make_driver, make_ride, seed


@pytest.fixture
def seeded_provider():
    cache = DistanceCache(path=None)
    seed(cache, ALEXANDERPLATZ, BRANDENBURG_GATE, 4.0, 0.25)      # deadhead: 4 km, 15 min
    seed(cache, BRANDENBURG_GATE, CHECKPOINT_CHARLIE, 6.0, 0.5)   # ride leg: 6 km
    return RouteMetricsProvider(MockOSRM(), cache=cache)


def test_default_hourly_cost():
    assert DRIVER_HOURLY_COST == 30


def test_cost_breakdown(seeded_provider, policy):
    driver = make_driver("driver1", fuel_cost=0.5)
    ride = make_ride("r1", "09:00", "10:00")

    cost = estimate_cost(driver, ride, ALEXANDERPLATZ, seeded_provider, policy)

    # fuel: (4 + 6) km * 0.5
    assert cost.fuel_cost == pytest.approx(5.0)
    # labor: (15 min deadhead + 60 min scheduled ride) / 60 * 30
    assert cost.labor_cost == pytest.approx(37.5)
    assert cost.total_cost == pytest.approx(42.5)
    assert seeded_provider.external_calls == 0


def test_ride_is_billed_on_its_scheduled_duration(seeded_provider, policy):
    # the OSRM ride leg takes 30 min, but the booking is 90 min
    driver = make_driver("driver1", fuel_cost=0.0)
    ride = make_ride("r1", "09:00", "10:30")

    cost = estimate_cost(driver, ride, ALEXANDERPLATZ, seeded_provider, policy)

    assert cost.labor_cost == pytest.approx((15 + 90) / 60 * 30)


def test_starting_at_the_pickup_costs_only_the_ride(policy):
    cache = DistanceCache(path=None)
    seed(cache, BRANDENBURG_GATE, BRANDENBURG_GATE, 0.0, 0.0)
    seed(cache, BRANDENBURG_GATE, CHECKPOINT_CHARLIE, 6.0, 0.5)
    provider = RouteMetricsProvider(MockOSRM(), cache=cache)
    driver = make_driver("driver1", fuel_cost=1.0)

    cost = estimate_cost(driver, make_ride("r1", "09:00", "09:30"), BRANDENBURG_GATE, provider, policy)

    assert cost.fuel_cost == pytest.approx(6.0)
    assert cost.labor_cost == pytest.approx(15.0)


def test_hourly_cost_comes_from_policy(seeded_provider):
    driver = make_driver("driver1", fuel_cost=0.0)
    ride = make_ride("r1", "09:00", "10:00")

    cost = estimate_cost(driver, ride, ALEXANDERPLATZ, seeded_provider, SchedulingPolicy(driver_hourly_cost=60))

    assert cost.labor_cost == pytest.approx(75.0)


def test_provider_error_propagates(policy):
    osrm = MockOSRM(failing=[(BRANDENBURG_GATE, CHECKPOINT_CHARLIE)])
    provider = RouteMetricsProvider(osrm, cache=DistanceCache(path=None))
    driver = make_driver("driver1")

    with pytest.raises(ProviderError):
        estimate_cost(driver, make_ride("r1", "09:00", "10:00"), ALEXANDERPLATZ, provider, policy)
