"""Walking-only ordering used when clustering is disabled."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Stop
from ..geospatial import distance_matrix_m
from .models import WalkingRoute
from .tour import nearest_neighbor, path_length, two_opt
from .walking import require_coordinate

SAME_CATEGORY_DISCOUNT = 0.8


def optimize_single_mode(
    stops: Sequence[Stop],
    walking_speed_kmh: float,
    prioritize_category: bool = False,
    refine: bool = False,
) -> WalkingRoute:
    """Open nearest-neighbour walk from the first stop.

    With ``prioritize_category`` a candidate sharing the current stop's
    category ranks as if it were 20% closer. ``refine`` adds 2-opt on the open
    path with the first stop fixed.
    """
    if not stops:
        return WalkingRoute(stop_ids=(), distance_m=0.0, time_min=0.0)

    matrix = distance_matrix_m([require_coordinate(stop) for stop in stops])

    def category_weight(current: int, candidate: int, distance: float) -> float:
        category = stops[current].category
        if category is not None and stops[candidate].category == category:
            return distance * SAME_CATEGORY_DISCOUNT
        return distance

    order = [0, *nearest_neighbor(
        matrix,
        0,
        range(1, len(stops)),
        weight=category_weight if prioritize_category else None,
    )]
    if refine:
        order = two_opt(matrix, order, closed=False)

    distance_m = path_length(matrix, order)
    return WalkingRoute(
        stop_ids=tuple(stops[i].id for i in order),
        distance_m=distance_m,
        time_min=distance_m / 1000.0 / walking_speed_kmh * 60.0,
    )
