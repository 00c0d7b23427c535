"""Walking-radius clustering of located stops."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from ...models.domain import Stop
from ..geospatial import centroid, distance_matrix_m, haversine_m
from .models import Cluster
from .walking import require_coordinate, optimize_walk, walking_stats

logger = logging.getLogger(__name__)

MIN_CLUSTER_FRACTION = 0.4
MERGE_CAPACITY_FACTOR = 1.5
SIZE_SCORE_WEIGHT = 100.0


def select_anchor(members: Sequence[Stop]) -> Stop:
    """The member nearest the members' centroid; ties go to the earlier member."""
    if not members:
        raise ValueError("A cluster needs at least one member.")
    center = centroid([require_coordinate(stop) for stop in members])
    best = members[0]
    best_distance = haversine_m(require_coordinate(best), center)
    for stop in members[1:]:
        distance = haversine_m(require_coordinate(stop), center)
        if distance < best_distance:
            best, best_distance = stop, distance
    return best


def make_cluster(cluster_id: str, members: Sequence[Stop], walking_speed_kmh: float) -> Cluster:
    """Build a cluster with anchor, walking order and walking figures derived from ``members``."""
    anchor_stop = select_anchor(members)
    anchor = require_coordinate(anchor_stop)
    order = optimize_walk(members, anchor)
    distance_m, time_min = walking_stats(members, order, anchor, walking_speed_kmh)
    return Cluster(
        cluster_id=cluster_id,
        member_ids=tuple(stop.id for stop in members),
        anchor=anchor,
        anchor_stop_id=anchor_stop.id,
        ordered_stop_ids=tuple(order),
        walking_distance_m=distance_m,
        walking_time_min=time_min,
    )


def build_clusters(
    stops: Sequence[Stop],
    max_walking_distance_m: float,
    preferred_size: int,
    walking_speed_kmh: float,
) -> list[Cluster]:
    """Seed-and-grow clustering.

    The first unassigned stop seeds a cluster. The remaining unassigned stops
    are then scanned once in input order; a stop joins when it lies within
    ``max_walking_distance_m`` of any current member, until the cluster holds
    ``preferred_size`` stops.
    """
    if not stops:
        return []
    matrix = distance_matrix_m([require_coordinate(stop) for stop in stops])

    clusters: list[Cluster] = []
    unassigned = list(range(len(stops)))
    while unassigned:
        members = [unassigned.pop(0)]
        remaining: list[int] = []
        for index in unassigned:
            if len(members) < preferred_size and any(
                matrix[index, member] <= max_walking_distance_m for member in members
            ):
                members.append(index)
            else:
                remaining.append(index)
        unassigned = remaining
        clusters.append(
            make_cluster(f"cluster-{len(clusters)}", [stops[i] for i in members], walking_speed_kmh)
        )

    logger.debug(f"Built {len(clusters)} clusters from {len(stops)} stops")
    return clusters


def min_cluster_size(preferred_size: int) -> int:
    return max(2, math.floor(preferred_size * MIN_CLUSTER_FRACTION))


def redistribute_small_clusters(
    clusters: Sequence[Cluster],
    stops: Sequence[Stop],
    max_walking_distance_m: float,
    preferred_size: int,
    walking_speed_kmh: float,
) -> list[Cluster]:
    """Merge undersized clusters into nearby normal clusters, once.

    A target qualifies when the merged size stays within
    ``preferred_size * 1.5`` and every member of the small cluster is within
    walking range of some target member. The best target maximizes
    ``(max_walk - anchor distance) + (preferred_size - target size) * 100``.
    Merged clusters keep the target's id and position; small clusters that
    find no target follow the normal ones unchanged.
    """
    threshold = min_cluster_size(preferred_size)
    normal = [cluster for cluster in clusters if cluster.size >= threshold]
    small = [cluster for cluster in clusters if cluster.size < threshold]
    if not small or not normal:
        return list(clusters)

    stop_by_id = {stop.id: stop for stop in stops}
    capacity = preferred_size * MERGE_CAPACITY_FACTOR
    result = list(normal)
    unmerged: list[Cluster] = []

    for candidate in small:
        candidate_points = [require_coordinate(stop_by_id[i]) for i in candidate.member_ids]
        best_pos = None
        best_score = -math.inf
        for pos, target in enumerate(result):
            if target.size + candidate.size > capacity:
                continue
            target_points = [require_coordinate(stop_by_id[i]) for i in target.member_ids]
            reachable = all(
                any(haversine_m(point, other) <= max_walking_distance_m for other in target_points)
                for point in candidate_points
            )
            if not reachable:
                continue
            score = (max_walking_distance_m - haversine_m(candidate.anchor, target.anchor)) + (
                preferred_size - target.size
            ) * SIZE_SCORE_WEIGHT
            if score > best_score:
                best_pos, best_score = pos, score

        if best_pos is None:
            unmerged.append(candidate)
            continue

        target = result[best_pos]
        members = [stop_by_id[i] for i in (*target.member_ids, *candidate.member_ids)]
        result[best_pos] = make_cluster(target.cluster_id, members, walking_speed_kmh)
        logger.debug(f"Merged {candidate.cluster_id} ({candidate.size} stops) into {target.cluster_id}")

    return result + unmerged
