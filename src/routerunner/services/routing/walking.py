"""Walking order inside one cluster, starting and ending at the parked bike."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Coordinate, Stop
from ..geospatial import distance_matrix_m, haversine_m
from .tour import nearest_neighbor, two_opt


def require_coordinate(stop: Stop) -> Coordinate:
    if stop.coordinate is None:
        raise ValueError(f"Stop '{stop.id}' has no coordinate.")
    return stop.coordinate


def nearest_neighbor_walk(members: Sequence[Stop], anchor: Coordinate) -> list[str]:
    """Greedy walking order from ``anchor`` without refinement."""
    coordinates = [anchor, *(require_coordinate(stop) for stop in members)]
    matrix = distance_matrix_m(coordinates)
    order = nearest_neighbor(matrix, 0, range(1, len(coordinates)))
    return [members[node - 1].id for node in order]


def optimize_walk(members: Sequence[Stop], anchor: Coordinate) -> list[str]:
    """Order ``members`` for a closed walk anchor -> stops -> anchor.

    Nearest-neighbour construction from the anchor, then 2-opt on the closed
    tour. With two or fewer members every order is equivalent, so the input
    order is returned.
    """
    if len(members) <= 2:
        return [stop.id for stop in members]

    coordinates = [anchor, *(require_coordinate(stop) for stop in members)]
    matrix = distance_matrix_m(coordinates)
    initial = nearest_neighbor(matrix, 0, range(1, len(coordinates)))
    tour = two_opt(matrix, [0, *initial], closed=True)
    return [members[node - 1].id for node in tour[1:]]


def walking_stats(
    members: Sequence[Stop],
    order: Sequence[str],
    anchor: Coordinate,
    walking_speed_kmh: float,
) -> tuple[float, float]:
    """Closed-tour distance in meters and walking time in minutes."""
    if not order:
        return 0.0, 0.0
    by_id = {stop.id: require_coordinate(stop) for stop in members}
    points = [anchor, *(by_id[stop_id] for stop_id in order), anchor]
    distance_m = sum(haversine_m(a, b) for a, b in zip(points, points[1:]))
    return distance_m, distance_m / 1000.0 / walking_speed_kmh * 60.0
