import pytest

from routerunner.models.domain import Address, Coordinate, Stop
from routerunner.services.geospatial import haversine_m
from routerunner.services.routing.clustering import make_cluster
from routerunner.services.routing.sequencer import sequence_clusters

HOME = Coordinate(longitude=5.0, latitude=52.0)


def _cluster(cluster_id: str, lon: float, lat: float):
    stop = Stop(
        id=f"{cluster_id}-stop",
        address=Address(street="Straat", house_number="1", postal_code="3500 AA", city="Utrecht"),
        coordinate=Coordinate(longitude=lon, latitude=lat),
    )
    return make_cluster(cluster_id, [stop], 5.0)


def test_home_base_round_trip_uses_nearest_neighbor():
    far = _cluster("far", 5.10, 52.0)
    near = _cluster("near", 5.01, 52.0)
    mid = _cluster("mid", 5.05, 52.0)

    sequence = sequence_clusters([far, near, mid], HOME, 18.0, 30)

    assert sequence.cluster_ids == ("near", "mid", "far")
    expected = (
        haversine_m(HOME, near.anchor)
        + haversine_m(near.anchor, mid.anchor)
        + haversine_m(mid.anchor, far.anchor)
        + haversine_m(far.anchor, HOME)
    )
    assert sequence.cycling_distance_m == pytest.approx(expected)
    assert sequence.cycling_time_min == pytest.approx(expected / 1000 / 18.0 * 60)
    assert sequence.parking_time_min == pytest.approx(1.5)


def test_without_home_base_starts_at_first_cluster():
    first = _cluster("first", 5.05, 52.0)
    east = _cluster("east", 5.10, 52.0)
    west = _cluster("west", 5.04, 52.0)

    sequence = sequence_clusters([first, east, west], None, 18.0, 0)

    assert sequence.cluster_ids == ("first", "west", "east")
    expected = haversine_m(first.anchor, west.anchor) + haversine_m(west.anchor, east.anchor)
    assert sequence.cycling_distance_m == pytest.approx(expected)
    assert sequence.parking_time_min == 0


def test_empty_sequence():
    sequence = sequence_clusters([], HOME, 18.0, 30)
    assert sequence.cluster_ids == ()
    assert sequence.cycling_distance_m == 0.0
