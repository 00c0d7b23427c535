"""Cycling order over cluster anchors."""

from __future__ import annotations

from typing import Optional, Sequence

from ...models.domain import Coordinate
from ..geospatial import distance_matrix_m
from .models import Cluster, ClusterSequence
from .tour import nearest_neighbor, path_length


def sequence_clusters(
    clusters: Sequence[Cluster],
    home_base: Optional[Coordinate],
    cycling_speed_kmh: float,
    bike_parking_time_s: float,
) -> ClusterSequence:
    """Nearest-neighbour order over anchors, from and back to ``home_base`` when given.

    Without a home base the ride starts at the first cluster and ends at the
    last one visited.
    """
    if not clusters:
        return ClusterSequence(cluster_ids=(), cycling_distance_m=0.0, cycling_time_min=0.0, parking_time_min=0.0)

    anchors = [cluster.anchor for cluster in clusters]
    if home_base is not None:
        matrix = distance_matrix_m([home_base, *anchors])
        visit = nearest_neighbor(matrix, 0, range(1, len(anchors) + 1))
        distance_m = path_length(matrix, [0, *visit, 0])
        order = [node - 1 for node in visit]
    else:
        matrix = distance_matrix_m(anchors)
        order = [0, *nearest_neighbor(matrix, 0, range(1, len(anchors)))]
        distance_m = path_length(matrix, order)

    return ClusterSequence(
        cluster_ids=tuple(clusters[i].cluster_id for i in order),
        cycling_distance_m=distance_m,
        cycling_time_min=distance_m / 1000.0 / cycling_speed_kmh * 60.0,
        parking_time_min=len(clusters) * bike_parking_time_s / 60.0,
    )
