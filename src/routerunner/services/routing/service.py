"""Routing orchestration service."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Sequence

from ...config import settings
from ...models.domain import Coordinate, ResolutionIssue, ResolutionWarning, Stop
from ...persistence.filesystem import FileStorage
from ..cache import TTLCache
from ..geocoding import CoordinateResolver, get_provider
from ..outputs.routing_formatter import route_plan_to_csv, route_plan_to_json
from .clustering import build_clusters, redistribute_small_clusters
from .legs import LegRequest, LegRouter
from .models import HOME_BASE_ID, Leg, PlanMode, PlannerConfig, RoutePlan, TravelMode
from .osrm_client import OSRMClient
from .sequencer import sequence_clusters
from .single_mode import optimize_single_mode

logger = logging.getLogger(__name__)

Waypoint = tuple[str, Coordinate]

# Shared across runs within one process.
_geocode_cache: TTLCache = TTLCache(settings.geocode_cache_ttl_seconds)
_route_cache: TTLCache = TTLCache(settings.route_cache_ttl_seconds)


def new_plan_id() -> str:
    return f"plan-{uuid.uuid4().hex[:12]}"


def default_resolver() -> CoordinateResolver:
    return CoordinateResolver(get_provider(settings.geocoder), cache=_geocode_cache)


def default_leg_router(config: PlannerConfig) -> LegRouter:
    """Street routing is only attempted when an OSRM base URL is configured."""
    provider = OSRMClient() if settings.osrm_base_url else None
    return LegRouter(
        provider,
        cache=_route_cache,
        walking_speed_kmh=config.walking_speed_kmh,
        cycling_speed_kmh=config.cycling_speed_kmh,
    )


def _check_unique_ids(stops: Sequence[Stop]) -> None:
    seen: set[str] = set()
    for stop in stops:
        if stop.id in seen:
            raise ValueError(f"Duplicate stop id '{stop.id}'.")
        seen.add(stop.id)


def build_route_plan(
    stops: Sequence[Stop],
    config: PlannerConfig | None = None,
    *,
    plan_id: str | None = None,
    warnings: Sequence[ResolutionWarning] = (),
    errors: Sequence[ResolutionIssue] = (),
) -> RoutePlan:
    """Order already-located stops into a plan. Synchronous and provider-free.

    Stops without a coordinate are left out and reported as errors.
    """
    config = config or PlannerConfig()
    config.validate()
    _check_unique_ids(stops)

    issues = list(errors)
    located: list[Stop] = []
    for stop in stops:
        if stop.coordinate is None:
            issues.append(ResolutionIssue(stop_id=stop.id, reason="no coordinate available"))
        else:
            located.append(stop)

    mode = PlanMode.MULTI_MODAL if config.multi_modal_enabled else PlanMode.WALKING
    plan = RoutePlan(
        plan_id=plan_id or new_plan_id(),
        mode=mode,
        home_base=config.home_base,
        warnings=tuple(warnings),
        errors=tuple(issues),
    )
    if not located:
        return plan

    if mode is PlanMode.WALKING:
        route = optimize_single_mode(
            located,
            config.walking_speed_kmh,
            prioritize_category=config.prioritize_category_grouping,
            refine=config.single_mode_two_opt,
        )
        return replace(
            plan,
            stop_sequence=route.stop_ids,
            total_walking_distance_m=route.distance_m,
            total_walking_time_min=route.time_min,
        )

    clusters = build_clusters(
        located, config.max_walking_distance_m, config.preferred_cluster_size, config.walking_speed_kmh
    )
    clusters = redistribute_small_clusters(
        clusters, located, config.max_walking_distance_m, config.preferred_cluster_size, config.walking_speed_kmh
    )
    sequence = sequence_clusters(clusters, config.home_base, config.cycling_speed_kmh, config.bike_parking_time_s)
    by_id = {cluster.cluster_id: cluster for cluster in clusters}
    stop_sequence = tuple(
        stop_id for cluster_id in sequence.cluster_ids for stop_id in by_id[cluster_id].ordered_stop_ids
    )
    logger.info(
        f"Planned {len(located)} stops in {len(clusters)} clusters "
        f"({sum(c.walking_distance_m for c in clusters):.0f} m walking, {sequence.cycling_distance_m:.0f} m cycling)"
    )
    return replace(
        plan,
        clusters=tuple(by_id[cluster_id] for cluster_id in sequence.cluster_ids),
        cluster_sequence=sequence.cluster_ids,
        stop_sequence=stop_sequence,
        total_walking_distance_m=sum(cluster.walking_distance_m for cluster in clusters),
        total_walking_time_min=sum(cluster.walking_time_min for cluster in clusters),
        total_cycling_distance_m=sequence.cycling_distance_m,
        total_cycling_time_min=sequence.cycling_time_min,
        total_parking_time_min=sequence.parking_time_min,
    )


def build_leg_requests(plan: RoutePlan, coordinates: dict[str, Coordinate]) -> list[LegRequest]:
    """Every walking and cycling leg of ``plan`` in travel order.

    The home base travels with its own coordinate, so a stop may share its id.
    """
    requests: list[LegRequest] = []

    def at(stop_id: str) -> Waypoint:
        return stop_id, coordinates[stop_id]

    def add(origin: Waypoint, destination: Waypoint, mode: TravelMode) -> None:
        requests.append(LegRequest(origin[0], destination[0], origin[1], destination[1], mode))

    if plan.mode is PlanMode.WALKING:
        for origin_id, destination_id in zip(plan.stop_sequence, plan.stop_sequence[1:]):
            add(at(origin_id), at(destination_id), TravelMode.WALKING)
        return requests

    home = (HOME_BASE_ID, plan.home_base) if plan.home_base is not None else None
    previous = home
    for cluster in plan.clusters:
        anchor = at(cluster.anchor_stop_id)
        if previous is not None:
            add(previous, anchor, TravelMode.CYCLING)
        walk = [cluster.anchor_stop_id, *cluster.ordered_stop_ids, cluster.anchor_stop_id]
        for origin_id, destination_id in zip(walk, walk[1:]):
            # Stop ids are unique, so equal ids mean the anchor stop itself.
            if origin_id != destination_id:
                add(at(origin_id), at(destination_id), TravelMode.WALKING)
        previous = anchor
    if home is not None and previous is not None:
        add(previous, home, TravelMode.CYCLING)
    return requests


def persist_plan(plan: RoutePlan, storage: FileStorage | None = None) -> str:
    storage = storage or FileStorage()
    run_dir = storage.make_run_directory(prefix=f"routes_{plan.plan_id}")
    storage.write_json(run_dir / "summary.json", route_plan_to_json(plan))
    storage.write_csv(run_dir / "stops.csv", route_plan_to_csv(plan))
    logger.info(f"Saved plan {plan.plan_id} to {run_dir}")
    return str(run_dir)


async def plan_route(
    stops: Sequence[Stop],
    config: PlannerConfig | None = None,
    *,
    resolver: CoordinateResolver | None = None,
    leg_router: LegRouter | None = None,
    annotate_legs: bool = True,
    plan_id: str | None = None,
) -> RoutePlan:
    """Resolve, cluster, order and annotate ``stops`` into a new plan.

    Configuration problems raise ``InvalidConfigurationError`` before any
    lookup. Geocoding and routing failures degrade to approximate
    coordinates and estimated legs reported on the plan.
    """
    config = config or PlannerConfig()
    config.validate()
    _check_unique_ids(stops)

    if not stops:
        return build_route_plan([], config, plan_id=plan_id)

    owns_resolver = resolver is None
    resolver = resolver or default_resolver()
    try:
        batch = await resolver.resolve_all(stops)
    finally:
        if owns_resolver:
            await resolver.provider.aclose()

    located = batch.located_stops(stops)
    plan = build_route_plan(located, config, plan_id=plan_id, warnings=batch.warnings, errors=batch.errors)
    if not annotate_legs or plan.is_empty:
        return plan

    owns_router = leg_router is None
    leg_router = leg_router or default_leg_router(config)
    coordinates = {stop.id: stop.coordinate for stop in located if stop.coordinate is not None}
    try:
        legs: list[Leg] = await leg_router.legs(build_leg_requests(plan, coordinates))
    finally:
        if owns_router and leg_router.provider is not None:
            await leg_router.provider.aclose()
    return replace(plan, legs=tuple(legs))
