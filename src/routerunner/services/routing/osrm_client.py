"""Async HTTP client for OSRM street routes."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .models import TravelMode

logger = logging.getLogger(__name__)

# OSRM profile names per travel mode.
PROFILES = {
    TravelMode.WALKING: "foot",
    TravelMode.CYCLING: "bike",
}


class RoutingProviderError(Exception):
    """Raised when a street route could not be obtained."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


@dataclass(frozen=True, slots=True)
class StreetRoute:
    distance_m: float
    duration_s: float
    path: tuple[Coordinate, ...]


class StreetRouteProvider(ABC):
    name: str = "provider"

    @abstractmethod
    async def route(self, origin: Coordinate, destination: Coordinate, mode: TravelMode) -> StreetRoute:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


def _coordinate_pair(origin: Coordinate, destination: Coordinate) -> str:
    return f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"


class OSRMClient(StreetRouteProvider):
    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))
        return self._client

    async def route(self, origin: Coordinate, destination: Coordinate, mode: TravelMode) -> StreetRoute:
        """Street route between two points following the mode's OSRM profile."""
        profile = PROFILES[mode]
        url = f"{self.base_url}/route/v1/{profile}/{_coordinate_pair(origin, destination)}"
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }
        client = self._get_client()
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise RoutingProviderError(
                f"OSRM returned HTTP {status_code}",
                retryable=status_code == 429 or status_code >= 500,
            ) from exc
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise RoutingProviderError(
                f"Failed to connect to OSRM service at {self.base_url}: {exc}", retryable=True
            ) from exc
        except ValueError as exc:
            raise RoutingProviderError("OSRM returned invalid JSON") from exc

        if data.get("code") != "Ok":
            error_msg = data.get("message", "Unknown OSRM route error")
            raise RoutingProviderError(f"OSRM route request failed: {error_msg}")
        routes = data.get("routes") or []
        if not routes:
            raise RoutingProviderError("OSRM returned no routes")

        best = routes[0]
        geometry = best.get("geometry") or ""
        path = tuple(
            Coordinate(longitude=lon, latitude=lat) for lat, lon in decode_polyline(geometry)
        ) or (origin, destination)
        return StreetRoute(
            distance_m=float(best.get("distance", 0.0)),
            duration_s=float(best.get("duration", 0.0)),
            path=path,
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _decode_value(polyline: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        b = ord(polyline[index]) - 63
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode an encoded polyline (OSRM default geometry) to ``(lat, lon)`` pairs."""
    factor = 10**precision
    coordinates: list[tuple[float, float]] = []
    index = lat = lon = 0
    while index < len(polyline):
        dlat, index = _decode_value(polyline, index)
        dlon, index = _decode_value(polyline, index)
        lat += dlat
        lon += dlon
        coordinates.append((lat / factor, lon / factor))
    return coordinates


async def check_health(base_url: str | None = None, *, client: Optional[httpx.AsyncClient] = None) -> bool:
    """Probe OSRM with a short walking route inside Amsterdam."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    osrm = OSRMClient(base, timeout=5.0, client=client)
    try:
        await osrm.route(
            Coordinate(longitude=4.8952, latitude=52.3702),
            Coordinate(longitude=4.9041, latitude=52.3676),
            TravelMode.WALKING,
        )
        return True
    except RoutingProviderError as exc:
        logger.warning(f"OSRM health check failed: {exc}")
        return False
    finally:
        await osrm.aclose()
