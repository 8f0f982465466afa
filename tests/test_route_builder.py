import math
import random
from dataclasses import asdict

import pytest

from conftest import KM_LAT, START, make_location, start_location
from fieldroute.models.domain import RouteOptimizationParams
from fieldroute.services.routing.builder import (
    INFEASIBLE_ROUTE_LIMIT,
    INFEASIBLE_ROUTE_TIME,
    INFEASIBLE_TIME_WINDOW,
    order_candidates,
)
from fieldroute.services.routing.estimator import TravelEstimator
from fieldroute.services.routing.optimizer import optimize_route


def _optimize(*destinations, refine_sequences=False, **overrides):
    params = RouteOptimizationParams(
        start_location=start_location(),
        destinations=list(destinations),
        refine_sequences=refine_sequences,
        **overrides,
    )
    return optimize_route(params)


def _placed_ids(result) -> list[str]:
    return [lid for plan in result.routes for lid in plan.location_ids]


def _scatter(count: int, seed: int = 7, *, windows: bool = False):
    rng = random.Random(seed)
    locations = []
    for index in range(count):
        window = None
        if windows and index % 3 == 0:
            opens = rng.choice([9, 10, 11, 13, 14])
            window = (f"{opens:02d}:00", f"{opens + 2:02d}:00")
        locations.append(
            make_location(
                f"D{index:02d}",
                START[0] + rng.uniform(-0.15, 0.15),
                START[1] + rng.uniform(-0.2, 0.2),
                priority=rng.choice(["high", "medium", "low"]),
                service=rng.choice([20, 30, 45, 60]),
                window=window,
            )
        )
    return locations


def test_single_destination_forms_one_route():
    target = make_location("A", START[0] + 5 * KM_LAT, START[1], service=60)
    result = _optimize(target)

    travel = TravelEstimator(traffic_consideration=True).estimate(start_location(), target)
    assert len(result.routes) == 1
    assert result.routes[0].location_ids == ["A"]
    assert result.infeasible == []
    assert result.routes[0].total_distance_km == pytest.approx(5.0, rel=1e-3)
    assert result.routes[0].total_time_min == pytest.approx(travel.travel_minutes + 60)
    assert result.total_time_min == pytest.approx(result.routes[0].total_time_min)


def test_window_closed_before_earliest_arrival_is_reported_infeasible():
    reachable = make_location("A", START[0] + 3 * KM_LAT, START[1], service=45)
    too_early = make_location("B", START[0] - 3 * KM_LAT, START[1], window=("07:00", "08:00"))

    result = _optimize(reachable, too_early, route_start_time="09:00")

    assert _placed_ids(result) == ["A"]
    assert [item.location_id for item in result.infeasible] == ["B"]
    assert result.infeasible[0].reason == INFEASIBLE_TIME_WINDOW
    assert any("could not be scheduled" in text for text in result.recommendations)


def test_capacity_splits_ten_destinations_into_at_least_three_routes():
    destinations = [
        make_location(f"D{i}", START[0] + (i + 1) * KM_LAT, START[1] + (i % 3) * 0.01)
        for i in range(10)
    ]
    result = _optimize(*destinations, vehicle_capacity=4, max_route_time=480)

    assert len(result.routes) >= math.ceil(10 / 4)
    assert all(len(plan.stops) <= 4 for plan in result.routes)
    assert len(_placed_ids(result)) + len(result.infeasible) == 10


def test_duplicate_ids_are_collapsed():
    first = make_location("A", START[0] + 2 * KM_LAT, START[1])
    again = make_location("A", START[0] + 9 * KM_LAT, START[1])
    other = make_location("B", START[0] + 4 * KM_LAT, START[1])

    result = _optimize(first, again, other)

    placed = _placed_ids(result) + [item.location_id for item in result.infeasible]
    assert sorted(placed) == ["A", "B"]
    assert result.metadata["duplicates_removed"] == 1
    assert result.metadata["destination_count"] == 2


def test_early_arrival_waits_for_window_to_open():
    target = make_location("A", START[0] + 1 * KM_LAT, START[1], service=30, window=("10:00", "11:00"))
    result = _optimize(target, route_start_time="09:00")

    stop = result.routes[0].stops[0]
    assert stop.wait_min == pytest.approx(60 - stop.travel_min)
    assert result.routes[0].total_time_min == pytest.approx(90.0)
    assert stop.arrival_time == "09:02"


def test_service_longer_than_route_budget_is_infeasible():
    huge = make_location("A", START[0] + KM_LAT, START[1], service=500)
    result = _optimize(huge, max_route_time=480)

    assert result.routes == []
    assert result.infeasible[0].reason == INFEASIBLE_ROUTE_TIME


def test_route_limit_reports_leftovers():
    destinations = [make_location(f"D{i}", START[0] + (i + 1) * KM_LAT, START[1]) for i in range(3)]
    result = _optimize(*destinations, vehicle_capacity=1, max_routes=2)

    assert len(result.routes) == 2
    assert [item.reason for item in result.infeasible] == [INFEASIBLE_ROUTE_LIMIT]


def test_route_time_budget_opens_new_routes():
    destinations = [make_location(f"D{i}", START[0] + (i + 1) * KM_LAT, START[1], service=120) for i in range(5)]
    result = _optimize(*destinations, max_route_time=300)

    assert len(result.routes) >= 3
    assert all(plan.total_time_min <= 300 for plan in result.routes)
    assert len(_placed_ids(result)) == 5


def test_priority_breaks_distance_ties():
    low = make_location("LOW", START[0] + 2 * KM_LAT, START[1], priority="low")
    high = make_location("HIGH", START[0] + 2 * KM_LAT, START[1], priority="high")

    result = _optimize(low, high, prioritize_time_windows=False)

    assert result.routes[0].location_ids == ["HIGH", "LOW"]


def test_candidate_pool_puts_windowed_then_higher_priority_first():
    plain_low = make_location("A", *START, priority="low")
    windowed_low = make_location("B", *START, priority="low", window=("09:00", "12:00"))
    plain_high = make_location("C", *START, priority="high")
    windowed_high = make_location("D", *START, priority="high", window=("09:00", "12:00"))

    ordered = order_candidates([plain_low, windowed_low, plain_high, windowed_high], True)
    unchanged = order_candidates([plain_low, windowed_low, plain_high, windowed_high], False)

    assert [loc.id for loc in ordered] == ["D", "B", "C", "A"]
    assert [loc.id for loc in unchanged] == ["A", "B", "C", "D"]


def test_default_service_time_applies_when_missing():
    target = make_location("A", START[0] + KM_LAT, START[1], service=None)
    result = _optimize(target)

    assert result.routes[0].stops[0].service_min == 30


def test_efficiency_is_service_share_of_route_time():
    target = make_location("A", START[0] + 5 * KM_LAT, START[1], service=60)
    plan = _optimize(target).routes[0]

    assert plan.efficiency == pytest.approx(60 / plan.total_time_min)
    assert 0.0 <= plan.efficiency <= 1.0
    assert plan.estimated_fuel_cost == pytest.approx(plan.total_distance_km * 0.15)


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"vehicle_capacity": 4},
        {"vehicle_capacity": 3, "max_route_time": 240},
        {"max_route_time": 200, "prioritize_time_windows": False},
        {"vehicle_capacity": 5, "max_routes": 2, "traffic_consideration": False},
    ],
)
@pytest.mark.parametrize("refine", [False, True])
def test_every_destination_is_routed_or_reported_once(overrides, refine):
    destinations = _scatter(24, windows=True)
    result = _optimize(*destinations, refine_sequences=refine, **overrides)

    placed = _placed_ids(result)
    reported = [item.location_id for item in result.infeasible]
    assert sorted(placed + reported) == sorted(d.id for d in destinations)
    assert len(set(placed)) == len(placed)
    assert not set(placed) & set(reported)

    max_route_time = overrides.get("max_route_time", 480)
    capacity = overrides.get("vehicle_capacity")
    for plan in result.routes:
        assert plan.total_time_min <= max_route_time + 1e-6
        if capacity is not None:
            assert len(plan.stops) <= capacity


def test_identical_input_gives_identical_output():
    destinations = _scatter(18, seed=11, windows=True)

    first = _optimize(*destinations, vehicle_capacity=5, refine_sequences=True)
    second = _optimize(*destinations, vehicle_capacity=5, refine_sequences=True)

    assert [asdict(plan) for plan in first.routes] == [asdict(plan) for plan in second.routes]
    assert [asdict(item) for item in first.infeasible] == [asdict(item) for item in second.infeasible]
    assert first.metadata["algorithm"] == second.metadata["algorithm"]


def test_open_time_window_is_visited_before_closer_unconstrained_stop():
    near = make_location("N", START[0] + 1 * KM_LAT, START[1])
    windowed = make_location("W", START[0] - 2 * KM_LAT, START[1], window=("09:00", "17:00"))

    preferred = _optimize(near, windowed, prioritize_time_windows=True)
    plain = _optimize(near, windowed, prioritize_time_windows=False)

    assert _placed_ids(preferred) == ["W", "N"]
    assert _placed_ids(plain) == ["N", "W"]


def test_window_that_has_not_opened_does_not_jump_the_queue():
    near = make_location("N", START[0] + 1 * KM_LAT, START[1])
    later = make_location("L", START[0] - 2 * KM_LAT, START[1], window=("14:00", "16:00"))

    result = _optimize(near, later, prioritize_time_windows=True)

    assert _placed_ids(result) == ["N", "L"]


def test_urgent_outranks_high_and_is_called_out():
    high = make_location("HIGH", START[0] + 2 * KM_LAT, START[1], priority="high")
    urgent = make_location("URGENT", START[0] + 2 * KM_LAT, START[1], priority="urgent")

    result = _optimize(high, urgent, prioritize_time_windows=False)

    assert result.routes[0].location_ids == ["URGENT", "HIGH"]
    assert "1 urgent stop(s) detected. Prioritized in route." in result.recommendations
