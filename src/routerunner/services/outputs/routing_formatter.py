"""Serializers for route plan outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import Coordinate
from ..routing.models import Cluster, Leg, RoutePlan


def _point(coordinate: Coordinate | None) -> list[float] | None:
    if coordinate is None:
        return None
    return [coordinate.longitude, coordinate.latitude]


def _cluster_to_json(cluster: Cluster) -> dict:
    return {
        "cluster_id": cluster.cluster_id,
        "anchor_stop_id": cluster.anchor_stop_id,
        "anchor": _point(cluster.anchor),
        "member_ids": list(cluster.member_ids),
        "ordered_stop_ids": list(cluster.ordered_stop_ids),
        "walking_distance_m": round(cluster.walking_distance_m, 1),
        "walking_time_min": round(cluster.walking_time_min, 2),
    }


def _leg_to_json(leg: Leg) -> dict:
    return {
        "origin_id": leg.origin_id,
        "destination_id": leg.destination_id,
        "mode": leg.mode.value,
        "distance_m": round(leg.distance_m, 1),
        "duration_min": round(leg.duration_min, 2),
        "estimated": leg.estimated,
        "path": [_point(point) for point in leg.path],
    }


def route_plan_to_json(plan: RoutePlan) -> dict:
    return {
        "plan_id": plan.plan_id,
        "mode": plan.mode.value,
        "created_at": plan.created_at.isoformat(),
        "home_base": _point(plan.home_base),
        "cluster_sequence": list(plan.cluster_sequence),
        "stop_sequence": list(plan.stop_sequence),
        "clusters": [_cluster_to_json(cluster) for cluster in plan.clusters],
        "legs": [_leg_to_json(leg) for leg in plan.legs],
        "totals": {
            "walking_distance_m": round(plan.total_walking_distance_m, 1),
            "walking_time_min": round(plan.total_walking_time_min, 2),
            "cycling_distance_m": round(plan.total_cycling_distance_m, 1),
            "cycling_time_min": round(plan.total_cycling_time_min, 2),
            "parking_time_min": round(plan.total_parking_time_min, 2),
            "distance_m": round(plan.total_distance_m, 1),
            "time_min": round(plan.total_time_min, 2),
        },
        "warnings": [asdict(warning) for warning in plan.warnings],
        "errors": [asdict(error) for error in plan.errors],
    }


def route_plan_to_csv(plan: RoutePlan) -> str:
    """One row per stop in visiting order."""
    buffer = io.StringIO()
    fieldnames = [
        "plan_id",
        "sequence",
        "stop_id",
        "cluster_id",
        "is_anchor",
        "approximate",
    ]
    cluster_of = {
        stop_id: cluster for cluster in plan.clusters for stop_id in cluster.member_ids
    }
    approximate = {warning.stop_id for warning in plan.warnings}
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for sequence, stop_id in enumerate(plan.stop_sequence, start=1):
        cluster = cluster_of.get(stop_id)
        writer.writerow(
            {
                "plan_id": plan.plan_id,
                "sequence": sequence,
                "stop_id": stop_id,
                "cluster_id": cluster.cluster_id if cluster else "",
                "is_anchor": bool(cluster and cluster.anchor_stop_id == stop_id),
                "approximate": stop_id in approximate,
            }
        )
    return buffer.getvalue()
