import math
import random

import pytest

from routerunner.models.domain import Address, Coordinate, Stop
from routerunner.services.routing.walking import nearest_neighbor_walk, optimize_walk, walking_stats

ORIGIN = Coordinate(longitude=5.12, latitude=52.09)
METERS_PER_DEG_LAT = 6371000.0 * math.pi / 180.0


def _stop(stop_id: str, east_m: float, north_m: float) -> Stop:
    lat = ORIGIN.latitude + north_m / METERS_PER_DEG_LAT
    lon = ORIGIN.longitude + east_m / (METERS_PER_DEG_LAT * math.cos(math.radians(ORIGIN.latitude)))
    return Stop(
        id=stop_id,
        address=Address(street="Oudegracht", house_number=stop_id, postal_code="3511 AB", city="Utrecht"),
        coordinate=Coordinate(longitude=lon, latitude=lat),
    )


def test_trivial_clusters_keep_input_order():
    a, b = _stop("a", 0, 0), _stop("b", 300, 0)
    assert optimize_walk([], ORIGIN) == []
    assert optimize_walk([a], ORIGIN) == ["a"]
    assert optimize_walk([b, a], a.coordinate) == ["b", "a"]


def test_square_is_walked_along_the_perimeter():
    stops = [_stop("a", 0, 0), _stop("c", 100, 100), _stop("b", 100, 0), _stop("d", 0, 100)]
    anchor = stops[0].coordinate
    order = optimize_walk(stops, anchor)

    distance_m, time_min = walking_stats(stops, order, anchor, 5.0)
    assert distance_m == pytest.approx(400, rel=0.01)
    assert time_min == pytest.approx(distance_m / 1000 / 5.0 * 60)
    position = {stop_id: i for i, stop_id in enumerate(order)}
    assert abs(position["a"] - position["c"]) != 1
    assert abs(position["b"] - position["d"]) != 1


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_two_opt_never_worse_than_nearest_neighbor(seed):
    rng = random.Random(seed)
    stops = [_stop(f"s{i}", rng.uniform(0, 400), rng.uniform(0, 400)) for i in range(10)]
    anchor = stops[3].coordinate

    greedy = nearest_neighbor_walk(stops, anchor)
    refined = optimize_walk(stops, anchor)

    assert sorted(refined) == sorted(stop.id for stop in stops)
    greedy_m, _ = walking_stats(stops, greedy, anchor, 5.0)
    refined_m, _ = walking_stats(stops, refined, anchor, 5.0)
    assert refined_m <= greedy_m + 1e-6


def test_walking_stats_for_empty_order():
    assert walking_stats([], [], ORIGIN, 5.0) == (0.0, 0.0)
