from datetime import date

import pytest

from drivers.availability import find_availability_window, index_availability
from drivers.models import AvailabilityWindow, Driver
from drivers.policy import SchedulingPolicy, default_scheduling_policy
from rides.models import Ride
from routing.geo import InputValidationError

from .conftest import DAY, NEXT_DAY, make_ride


def ride_record(**overrides):
    record = {
        "_id": "ride1",
        "date": "2025-03-10",
        "startTime": "08:30",
        "endTime": "09:15",
        "startPoint_coords": [52.5163, 13.3777],
        "endPoint_coords": [52.5075, 13.3904],
        "numberOfSeats": 2,
    }
    record.update(overrides)
    return record


def test_ride_from_record():
    ride = Ride.from_record(ride_record())

    assert ride.id == "ride1"
    assert ride.date == date(2025, 3, 10)
    assert ride.start_point == (52.5163, 13.3777)
    assert ride.start_minutes == 510
    assert ride.duration_minutes == 45
    assert ride.seats == 2


@pytest.mark.parametrize("overrides", [
    {"startTime": "8h30"},
    {"endTime": "08:00"},
    {"endTime": "08:30"},
    {"numberOfSeats": -1},
    {"numberOfSeats": "many"},
    {"date": "10/03/2025"},
    {"startPoint_coords": [52.5]},
])
def test_ride_from_record_rejects_malformed_values(overrides):
    with pytest.raises(InputValidationError):
        Ride.from_record(ride_record(**overrides))


def test_ride_from_record_rejects_missing_fields():
    record = ride_record()
    del record["endTime"]
    with pytest.raises(InputValidationError):
        Ride.from_record(record)


def test_ride_seats_default_to_one():
    record = ride_record()
    del record["numberOfSeats"]
    assert Ride.from_record(record).seats == 1


def test_driver_from_record():
    driver = Driver.from_record({"driverId": "driver1", "numberOfSeats": 4, "fuelCost": 0.12, "city_coords": [52.52, 13.405]})

    assert driver.id == "driver1"
    assert driver.seats == 4
    assert driver.fuel_cost_per_km == 0.12
    assert driver.home == (52.52, 13.405)


@pytest.mark.parametrize("record", [
    {"driverId": "d", "numberOfSeats": -1, "fuelCost": 0.1, "city_coords": [52.5, 13.4]},
    {"driverId": "d", "numberOfSeats": 4, "fuelCost": -0.1, "city_coords": [52.5, 13.4]},
    {"driverId": "d", "numberOfSeats": 4, "fuelCost": 0.1},
    {"driverId": "d", "numberOfSeats": 4, "fuelCost": 0.1, "city_coords": "Berlin"},
])
def test_driver_from_record_rejects_malformed_records(record):
    with pytest.raises(InputValidationError):
        Driver.from_record(record)


def test_availability_record_is_sorted_by_date():
    windows = AvailabilityWindow.from_driver_record({
        "driverId": "driver1",
        "availability": [
            {"date": "2025-03-11", "start": "09:00", "end": "17:00"},
            {"date": "2025-03-10", "start": "08:00", "end": "18:00"},
        ],
    })

    assert [w.date for w in windows] == [DAY, NEXT_DAY]
    assert all(w.driver_id == "driver1" for w in windows)


def test_availability_window_must_end_after_start():
    with pytest.raises(InputValidationError):
        AvailabilityWindow.new("driver1", DAY, "18:00", "08:00")


@pytest.mark.parametrize("window", [
    AvailabilityWindow("driver1", DAY, "8am", "18:00"),
    AvailabilityWindow("driver1", DAY, "08:00", None),
    AvailabilityWindow("driver1", "2025-03-10", "08:00", "18:00"),
    AvailabilityWindow("", DAY, "08:00", "18:00"),
])
def test_availability_window_validate_rejects_malformed_windows(window):
    with pytest.raises(InputValidationError):
        window.validate()


@pytest.mark.parametrize("point", [None, ("52.5", "13.4"), (52.5,), (52.5, 13.4, 0.0), (True, 13.4), (float("nan"), 13.4)])
def test_ride_validate_rejects_unusable_points(point):
    ride = Ride(id="r1", date=DAY, start_time="09:00", end_time="10:00", start_point=(52.5, 13.4), end_point=point)

    with pytest.raises(InputValidationError):
        ride.validate()


def test_ride_new_normalizes_numeric_strings():
    ride = Ride.new("r1", DAY, "09:00", "10:00", ["52.5", "13.4"], (52.5, 13))

    assert ride.start_point == (52.5, 13.4)
    ride.validate()


def test_driver_validate_rejects_unusable_home():
    driver = Driver(id="driver1", seats=4, fuel_cost_per_km=0.1, home="Berlin")

    with pytest.raises(InputValidationError):
        driver.validate()



def test_window_must_contain_the_whole_ride():
    availability = index_availability([AvailabilityWindow.new("driver1", DAY, "08:00", "18:00")])

    assert find_availability_window(availability, "driver1", make_ride("r", "08:00", "18:00")) is not None
    assert find_availability_window(availability, "driver1", make_ride("r", "07:30", "09:00")) is None
    assert find_availability_window(availability, "driver1", make_ride("r", "17:30", "18:30")) is None
    assert find_availability_window(availability, "driver1", make_ride("r", "09:00", "10:00", on=NEXT_DAY)) is None
    assert find_availability_window(availability, "driver2", make_ride("r", "09:00", "10:00")) is None


def test_index_availability_groups_by_driver():
    index = index_availability([
        AvailabilityWindow.new("driver2", NEXT_DAY, "10:00", "16:00"),
        AvailabilityWindow.new("driver1", DAY, "08:00", "18:00"),
        AvailabilityWindow.new("driver2", DAY, "07:00", "19:00"),
    ])

    assert set(index) == {"driver1", "driver2"}
    assert [w.date for w in index["driver2"]] == [DAY, NEXT_DAY]


def test_default_policy_constants():
    policy = default_scheduling_policy()
    assert policy.driver_hourly_cost == 30
    assert policy.average_speed_kmh == 50
    assert policy.safety_buffer_minutes == 10


@pytest.mark.parametrize("overrides", [
    {"driver_hourly_cost": -1},
    {"average_speed_kmh": 0},
    {"safety_buffer_minutes": -5},
    {"provider_min_interval_seconds": -0.1},
    {"max_workers": 0},
    {"run_timeout_seconds": 0},
])
def test_policy_validation(overrides):
    with pytest.raises(ValueError):
        SchedulingPolicy(**overrides).validate()
