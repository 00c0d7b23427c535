"""Per-leg distances and paths from a street-route provider, with estimates as fallback."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Sequence

from ...config import settings
from ...models.domain import Coordinate
from ..cache import TTLCache
from ..geospatial import haversine_m
from ..retry import RetryPolicy
from .models import Leg, TravelMode
from .osrm_client import RoutingProviderError, StreetRoute, StreetRouteProvider

logger = logging.getLogger(__name__)

# Points closer than this (|dlon| + |dlat| in degrees) are treated as the same place.
ZERO_LEG_DEGREES = 0.0001

RouteKey = tuple[float, float, float, float, str]


@dataclass(frozen=True, slots=True)
class LegRequest:
    origin_id: str
    destination_id: str
    origin: Coordinate
    destination: Coordinate
    mode: TravelMode


def route_cache_key(origin: Coordinate, destination: Coordinate, mode: TravelMode) -> RouteKey:
    return (
        round(origin.longitude, 4),
        round(origin.latitude, 4),
        round(destination.longitude, 4),
        round(destination.latitude, 4),
        mode.value,
    )


def is_zero_leg(origin: Coordinate, destination: Coordinate) -> bool:
    delta = abs(origin.longitude - destination.longitude) + abs(origin.latitude - destination.latitude)
    return delta < ZERO_LEG_DEGREES


class LegRouter:
    """Annotate legs with street routes, degrading to great-circle estimates.

    A leg never fails: when the provider is missing, times out or errors, the
    leg is ``haversine * detour`` at the configured mode speed and flagged
    ``estimated``.
    """

    def __init__(
        self,
        provider: StreetRouteProvider | None = None,
        *,
        cache: TTLCache[RouteKey, StreetRoute] | None = None,
        retry_policy: RetryPolicy | None = None,
        walking_speed_kmh: float | None = None,
        cycling_speed_kmh: float | None = None,
        walking_detour_factor: float | None = None,
        cycling_detour_factor: float | None = None,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=settings.osrm_max_retries,
            base_delay=settings.osrm_backoff_seconds,
            timeout=settings.osrm_timeout_seconds,
        )
        self.speeds = {
            TravelMode.WALKING: walking_speed_kmh or settings.walking_speed_kmh,
            TravelMode.CYCLING: cycling_speed_kmh or settings.cycling_speed_kmh,
        }
        self.detours = {
            TravelMode.WALKING: walking_detour_factor or settings.walking_detour_factor,
            TravelMode.CYCLING: cycling_detour_factor or settings.cycling_detour_factor,
        }
        self.batch_size = batch_size or settings.route_batch_size
        self.batch_delay_seconds = (
            batch_delay_seconds if batch_delay_seconds is not None else settings.route_batch_delay_seconds
        )

    def estimate(self, request: LegRequest) -> Leg:
        distance_m = haversine_m(request.origin, request.destination) * self.detours[request.mode]
        return Leg(
            origin_id=request.origin_id,
            destination_id=request.destination_id,
            mode=request.mode,
            distance_m=distance_m,
            duration_min=distance_m / 1000.0 / self.speeds[request.mode] * 60.0,
            path=(request.origin, request.destination),
            estimated=True,
        )

    @staticmethod
    def _from_route(request: LegRequest, route: StreetRoute) -> Leg:
        return Leg(
            origin_id=request.origin_id,
            destination_id=request.destination_id,
            mode=request.mode,
            distance_m=route.distance_m,
            duration_min=route.duration_s / 60.0,
            path=route.path,
        )

    async def leg(self, request: LegRequest) -> Leg:
        if is_zero_leg(request.origin, request.destination):
            return Leg(
                origin_id=request.origin_id,
                destination_id=request.destination_id,
                mode=request.mode,
                distance_m=0.0,
                duration_min=0.0,
                path=(request.origin,),
            )
        if self.provider is None:
            return self.estimate(request)

        key = route_cache_key(request.origin, request.destination, request.mode)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return self._from_route(request, cached)

        try:
            route = await self.retry_policy.run(
                functools.partial(self.provider.route, request.origin, request.destination, request.mode),
                description=f"{self.provider.name} route {request.origin_id}->{request.destination_id}",
            )
        except asyncio.TimeoutError:
            logger.warning(f"Route {request.origin_id}->{request.destination_id} timed out; using estimate")
            return self.estimate(request)
        except RoutingProviderError as exc:
            logger.warning(f"Route {request.origin_id}->{request.destination_id} failed: {exc}; using estimate")
            return self.estimate(request)
        except Exception as exc:
            logger.warning(f"Unexpected routing error for {request.origin_id}->{request.destination_id}: {exc}")
            return self.estimate(request)

        if self.cache is not None:
            route = self.cache.set(key, route)
        return self._from_route(request, route)

    async def legs(self, requests: Sequence[LegRequest]) -> list[Leg]:
        """Resolve legs in sequential batches of concurrent requests, keeping request order."""
        results: list[Leg] = []
        for start in range(0, len(requests), self.batch_size):
            chunk = requests[start : start + self.batch_size]
            results.extend(await asyncio.gather(*(self.leg(request) for request in chunk)))
            if start + self.batch_size < len(requests) and self.provider is not None and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)
        estimated = sum(1 for leg in results if leg.estimated)
        if estimated and self.provider is not None:
            logger.info(f"{estimated}/{len(results)} legs use great-circle estimates")
        return results
