"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from shapely.geometry import Point, box

from ..config import settings
from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two coordinates."""

    if a == b:
        return 0.0
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000.0


def distance_matrix_m(coordinates: Sequence[Coordinate]) -> np.ndarray:
    """Pairwise haversine distances (meters) as a symmetric matrix with a zero diagonal."""

    if not coordinates:
        return np.zeros((0, 0))
    lat = np.radians(np.array([c.latitude for c in coordinates], dtype=float))
    lon = np.radians(np.array([c.longitude for c in coordinates], dtype=float))

    d_phi = lat[None, :] - lat[:, None]
    d_lambda = lon[None, :] - lon[:, None]
    a = np.sin(d_phi / 2) ** 2 + np.cos(lat)[:, None] * np.cos(lat)[None, :] * np.sin(d_lambda / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    matrix = EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    # enforce exact symmetry so forward and reverse tours measure the same
    matrix = (matrix + matrix.T) / 2.0
    np.fill_diagonal(matrix, 0.0)
    return matrix


def centroid(coordinates: Sequence[Coordinate]) -> Coordinate:
    """Arithmetic mean of longitudes and latitudes."""

    if not coordinates:
        raise ValueError("centroid requires at least one coordinate")
    lon = sum(c.longitude for c in coordinates) / len(coordinates)
    lat = sum(c.latitude for c in coordinates) / len(coordinates)
    return Coordinate(longitude=lon, latitude=lat)


def in_region(coordinate: Coordinate, bounds: Sequence[float] | None = None) -> bool:
    """Return True if the coordinate lies inside the service region (edges included)."""

    min_lon, min_lat, max_lon, max_lat = bounds or settings.service_region
    if not (math.isfinite(coordinate.longitude) and math.isfinite(coordinate.latitude)):
        return False
    region = box(min_lon, min_lat, max_lon, max_lat)
    return region.covers(Point(coordinate.longitude, coordinate.latitude))
