import asyncio
import json
import math
from pathlib import Path

import pytest

from routerunner.models.domain import Accuracy, Address, Coordinate, Stop
from routerunner.persistence.filesystem import FileStorage
from routerunner.services.geocoding.base import GeocodeCandidate, GeocodeProvider, NullGeocodeProvider
from routerunner.services.geocoding.resolver import CoordinateResolver
from routerunner.services.retry import RetryPolicy
from routerunner.services.routing import service as routing_service
from routerunner.services.routing.legs import LegRouter
from routerunner.services.routing.models import (
    HOME_BASE_ID,
    InvalidConfigurationError,
    PlanMode,
    PlannerConfig,
    TravelMode,
)

ORIGIN = Coordinate(longitude=4.9, latitude=52.37)
METERS_PER_DEG_LAT = 6371000.0 * math.pi / 180.0


def _offset(east_m: float, north_m: float) -> Coordinate:
    lat = ORIGIN.latitude + north_m / METERS_PER_DEG_LAT
    lon = ORIGIN.longitude + east_m / (METERS_PER_DEG_LAT * math.cos(math.radians(ORIGIN.latitude)))
    return Coordinate(longitude=lon, latitude=lat)


def _stop(stop_id: str, east_m: float | None = None, north_m: float = 0.0, postal_code: str = "1012 AB") -> Stop:
    return Stop(
        id=stop_id,
        address=Address(street="Damrak", house_number=stop_id, postal_code=postal_code, city="Amsterdam"),
        coordinate=_offset(east_m, north_m) if east_m is not None else None,
    )


def _resolver(provider: GeocodeProvider | None = None) -> CoordinateResolver:
    return CoordinateResolver(
        provider or NullGeocodeProvider(),
        retry_policy=RetryPolicy(max_retries=0, base_delay=0.0),
        batch_delay_seconds=0,
    )


def _plan(stops, config=None, **kwargs):
    kwargs.setdefault("resolver", _resolver())
    kwargs.setdefault("leg_router", LegRouter(None, batch_delay_seconds=0))
    return asyncio.run(routing_service.plan_route(stops, config, **kwargs))


def test_empty_input_returns_empty_plan():
    plan = _plan([])

    assert plan.is_empty
    assert plan.clusters == ()
    assert plan.total_distance_m == 0.0
    assert plan.total_time_min == 0.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"preferred_cluster_size": 0},
        {"walking_speed_kmh": -1.0},
        {"cycling_speed_kmh": 0.0},
        {"max_walking_distance_m": -5.0},
        {"bike_parking_time_s": -1.0},
        {"walking_speed_kmh": float("nan")},
        {"cycling_speed_kmh": float("inf")},
        {"max_walking_distance_m": float("nan")},
        {"bike_parking_time_s": float("nan")},
    ],
)
def test_invalid_configuration_fails_before_any_lookup(overrides):
    class ExplodingProvider(GeocodeProvider):
        async def geocode(self, query):
            raise AssertionError("provider must not be called")

    config = PlannerConfig(**overrides)
    with pytest.raises(InvalidConfigurationError):
        _plan([_stop("a")], config, resolver=_resolver(ExplodingProvider()))


def test_duplicate_stop_ids_are_rejected():
    with pytest.raises(ValueError):
        _plan([_stop("a", 0), _stop("a", 10)])


def test_multi_modal_plan_with_home_base():
    stops = [_stop("a", 0), _stop("b", 50), _stop("c", 100), _stop("d", 2000), _stop("e", 2050)]
    config = PlannerConfig(max_walking_distance_m=400, preferred_cluster_size=8, home_base=_offset(-1000, 0))
    plan = _plan(stops, config)

    assert plan.mode is PlanMode.MULTI_MODAL
    assert sorted(plan.stop_sequence) == ["a", "b", "c", "d", "e"]
    assert len(plan.cluster_sequence) == 2
    assert plan.cluster_sequence[0] == "cluster-0"
    assert plan.total_parking_time_min == pytest.approx(2 * 30 / 60)
    assert plan.total_time_min == pytest.approx(
        plan.total_walking_time_min + plan.total_cycling_time_min + plan.total_parking_time_min
    )
    assert plan.legs[0].origin_id == HOME_BASE_ID
    assert plan.legs[0].mode is TravelMode.CYCLING
    assert plan.legs[-1].destination_id == HOME_BASE_ID
    assert all(leg.estimated for leg in plan.legs)
    assert plan.warnings == ()


def test_walking_mode_uses_single_pass():
    stops = [_stop("a", 0), _stop("far", 900), _stop("near", 100)]
    plan = _plan(stops, PlannerConfig(multi_modal_enabled=False))

    assert plan.mode is PlanMode.WALKING
    assert plan.stop_sequence == ("a", "near", "far")
    assert plan.clusters == ()
    assert [leg.mode for leg in plan.legs] == [TravelMode.WALKING, TravelMode.WALKING]


def test_unlocated_stops_fall_back_with_warnings():
    stops = [_stop("known", 0), _stop("unknown", postal_code="1991 AB")]
    plan = _plan(stops, PlannerConfig(multi_modal_enabled=False))

    assert set(plan.stop_sequence) == {"known", "unknown"}
    assert [w.stop_id for w in plan.warnings] == ["unknown"]
    assert plan.errors == ()


def test_provider_results_are_used():
    class FixedProvider(GeocodeProvider):
        name = "fixed"

        async def geocode(self, query):
            return [GeocodeCandidate(_offset(10, 10), 0.95, query, Accuracy.EXACT)]

    plan = _plan([_stop("x"), _stop("y", 0)], resolver=_resolver(FixedProvider()))
    assert plan.warnings == ()
    assert len(plan.clusters) == 1


def test_build_route_plan_excludes_stops_without_coordinates():
    plan = routing_service.build_route_plan([_stop("a", 0), _stop("b")], PlannerConfig())

    assert plan.stop_sequence == ("a",)
    assert [e.stop_id for e in plan.errors] == ["b"]


def test_new_run_produces_new_plan():
    stops = [_stop("a", 0), _stop("b", 50)]
    first = _plan(stops)
    second = _plan(stops)

    assert first.plan_id != second.plan_id
    assert first.stop_sequence == second.stop_sequence


def test_persist_plan_writes_summary_and_csv(tmp_path: Path):
    plan = _plan([_stop("a", 0), _stop("b", 50)])
    run_dir = Path(routing_service.persist_plan(plan, FileStorage(root=tmp_path)))

    assert run_dir.parent == tmp_path / "outputs"
    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["plan_id"] == plan.plan_id
    assert summary["stop_sequence"] == list(plan.stop_sequence)
    rows = (run_dir / "stops.csv").read_text(encoding="utf-8").strip().splitlines()
    assert rows[0].startswith("plan_id,sequence,stop_id")
    assert len(rows) == 3


def test_stop_named_like_home_base_keeps_its_coordinate():
    stops = [_stop(HOME_BASE_ID, 0), _stop("b", 35)]
    home_base = _offset(3400, 0)
    config = PlannerConfig(max_walking_distance_m=400, preferred_cluster_size=8, home_base=home_base)
    plan = routing_service.build_route_plan(stops, config)
    coordinates = {stop.id: stop.coordinate for stop in stops}

    requests = routing_service.build_leg_requests(plan, coordinates)

    cycling = [r for r in requests if r.mode is TravelMode.CYCLING]
    assert len(cycling) == 2
    assert cycling[0].origin == home_base
    assert cycling[0].destination == coordinates[cycling[0].destination_id]
    assert cycling[-1].destination == home_base
    walking = [r for r in requests if r.mode is TravelMode.WALKING]
    assert len(walking) == 2
    for request in walking:
        assert request.origin == coordinates[request.origin_id]
        assert request.destination == coordinates[request.destination_id]
