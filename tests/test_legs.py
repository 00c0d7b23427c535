import asyncio

import httpx
import pytest

from routerunner.models.domain import Coordinate
from routerunner.services.cache import TTLCache
from routerunner.services.geospatial import haversine_m
from routerunner.services.retry import RetryPolicy
from routerunner.services.routing.legs import LegRequest, LegRouter, is_zero_leg, route_cache_key
from routerunner.services.routing.models import TravelMode
from routerunner.services.routing.osrm_client import (
    OSRMClient,
    RoutingProviderError,
    StreetRoute,
    StreetRouteProvider,
    check_health,
    decode_polyline,
)

A = Coordinate(longitude=4.8952, latitude=52.3702)
B = Coordinate(longitude=4.9041, latitude=52.3676)
NO_RETRY = RetryPolicy(max_retries=0, base_delay=0.0)


class CountingProvider(StreetRouteProvider):
    name = "counting"

    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail

    async def route(self, origin, destination, mode):
        self.calls += 1
        if self.fail:
            raise RoutingProviderError("no route")
        return StreetRoute(distance_m=900.0, duration_s=600.0, path=(origin, B, destination))


def _request(mode: TravelMode = TravelMode.WALKING, origin: Coordinate = A, destination: Coordinate = B) -> LegRequest:
    return LegRequest("a", "b", origin, destination, mode)


def _router(provider=None, **kwargs) -> LegRouter:
    kwargs.setdefault("retry_policy", NO_RETRY)
    kwargs.setdefault("batch_delay_seconds", 0)
    return LegRouter(provider, **kwargs)


def test_estimate_without_provider_uses_detour_and_speed():
    leg = asyncio.run(_router(walking_speed_kmh=5.0, walking_detour_factor=1.3).leg(_request()))

    expected = haversine_m(A, B) * 1.3
    assert leg.estimated
    assert leg.distance_m == pytest.approx(expected)
    assert leg.duration_min == pytest.approx(expected / 1000 / 5.0 * 60)
    assert leg.path == (A, B)


def test_cycling_estimate_uses_cycling_speed():
    leg = asyncio.run(_router(cycling_speed_kmh=18.0).leg(_request(TravelMode.CYCLING)))
    assert leg.duration_min == pytest.approx(leg.distance_m / 1000 / 18.0 * 60)


def test_zero_leg_skips_provider():
    provider = CountingProvider()
    near_a = Coordinate(longitude=A.longitude + 0.00004, latitude=A.latitude + 0.00004)
    leg = asyncio.run(_router(provider).leg(_request(destination=near_a)))

    assert is_zero_leg(A, near_a)
    assert leg.distance_m == 0.0
    assert not leg.estimated
    assert provider.calls == 0


def test_provider_route_is_used_and_cached():
    provider = CountingProvider()
    router = _router(provider, cache=TTLCache(3600))

    first = asyncio.run(router.leg(_request()))
    second = asyncio.run(router.leg(_request()))

    assert not first.estimated
    assert first.distance_m == 900.0
    assert first.duration_min == 10.0
    assert second == first
    assert provider.calls == 1


def test_cache_key_rounds_to_four_decimals_and_includes_mode():
    shifted = Coordinate(longitude=A.longitude + 0.00001, latitude=A.latitude)
    assert route_cache_key(A, B, TravelMode.WALKING) == route_cache_key(shifted, B, TravelMode.WALKING)
    assert route_cache_key(A, B, TravelMode.WALKING) != route_cache_key(A, B, TravelMode.CYCLING)


def test_provider_failure_falls_back_to_estimate():
    leg = asyncio.run(_router(CountingProvider(fail=True)).leg(_request()))
    assert leg.estimated


def test_legs_keep_request_order():
    requests = [LegRequest(str(i), str(i + 1), A, B, TravelMode.WALKING) for i in range(7)]
    legs = asyncio.run(_router(CountingProvider(), batch_size=3).legs(requests))
    assert [leg.origin_id for leg in legs] == [str(i) for i in range(7)]


def test_decode_polyline_reference_example():
    points = decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")
    assert points == [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def test_osrm_client_parses_route_response():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(
            200,
            json={
                "code": "Ok",
                "routes": [{"distance": 812.4, "duration": 590.0, "geometry": "_p~iF~ps|U_ulLnnqC"}],
            },
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    osrm = OSRMClient("http://osrm.test", client=client)
    route = asyncio.run(osrm.route(A, B, TravelMode.CYCLING))

    assert seen["path"] == f"/route/v1/bike/{A.longitude},{A.latitude};{B.longitude},{B.latitude}"
    assert route.distance_m == 812.4
    assert route.path[0] == Coordinate(longitude=-120.2, latitude=38.5)


def test_osrm_client_maps_no_route_to_provider_error():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"code": "NoRoute", "message": "x"}))
    )
    with pytest.raises(RoutingProviderError) as excinfo:
        asyncio.run(OSRMClient("http://osrm.test", client=client).route(A, B, TravelMode.WALKING))
    assert not excinfo.value.retryable


def test_osrm_client_requires_base_url(monkeypatch):
    from routerunner.config import settings

    monkeypatch.setattr(settings, "osrm_base_url", None)
    with pytest.raises(ValueError):
        OSRMClient()


def test_check_health_reports_failure():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    assert asyncio.run(check_health("http://osrm.test", client=client)) is False
