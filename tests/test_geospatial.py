import math

import pytest

from routerunner.models.domain import Coordinate
from routerunner.services.geospatial import centroid, distance_matrix_m, haversine_m, in_region

AMSTERDAM = Coordinate(longitude=4.9041, latitude=52.3676)
UTRECHT = Coordinate(longitude=5.1214, latitude=52.0907)


def test_haversine_is_symmetric_and_zero_on_self():
    assert haversine_m(AMSTERDAM, UTRECHT) == pytest.approx(haversine_m(UTRECHT, AMSTERDAM))
    assert haversine_m(AMSTERDAM, AMSTERDAM) == 0.0


def test_haversine_known_distance():
    # Amsterdam centre to Utrecht centre is roughly 34 km as the crow flies.
    assert 33_000 < haversine_m(AMSTERDAM, UTRECHT) < 36_000


def test_distance_matrix_matches_pairwise_haversine():
    points = [AMSTERDAM, UTRECHT, Coordinate(longitude=4.4777, latitude=51.9225)]
    matrix = distance_matrix_m(points)

    assert matrix.shape == (3, 3)
    assert (matrix == matrix.T).all()
    assert all(matrix[i, i] == 0.0 for i in range(3))
    assert matrix[0, 1] == pytest.approx(haversine_m(AMSTERDAM, UTRECHT), rel=1e-9)
    assert distance_matrix_m([]).shape == (0, 0)


def test_centroid_is_arithmetic_mean():
    center = centroid([Coordinate(4.0, 52.0), Coordinate(5.0, 53.0)])
    assert center == Coordinate(longitude=4.5, latitude=52.5)


def test_centroid_rejects_empty_input():
    with pytest.raises(ValueError):
        centroid([])


def test_in_region_accepts_netherlands_and_rejects_elsewhere():
    assert in_region(AMSTERDAM)
    assert not in_region(Coordinate(longitude=2.3522, latitude=48.8566))  # Paris
    assert not in_region(Coordinate(longitude=math.nan, latitude=52.0))


def test_in_region_includes_edges_and_custom_bounds():
    bounds = (0.0, 0.0, 1.0, 1.0)
    assert in_region(Coordinate(longitude=1.0, latitude=0.5), bounds)
    assert not in_region(Coordinate(longitude=1.01, latitude=0.5), bounds)
