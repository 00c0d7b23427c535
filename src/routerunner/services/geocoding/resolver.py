"""Coordinate resolution: provider lookup with region check, cache and fallback."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import (
    Accuracy,
    Address,
    Coordinate,
    ResolutionIssue,
    ResolutionSource,
    ResolutionWarning,
    Stop,
)
from ..cache import TTLCache
from ..geospatial import in_region
from ..retry import RetryPolicy
from .base import GeocodeCandidate, GeocodeProvider, GeocodingError, NullGeocodeProvider
from .fallback import fallback_location

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.8


@dataclass(frozen=True, slots=True)
class Resolution:
    stop_id: str
    coordinate: Coordinate
    confidence: float
    accuracy: Accuracy
    source: ResolutionSource
    formatted: str
    provider: str
    reason: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source is ResolutionSource.FALLBACK


@dataclass(slots=True)
class ResolutionBatch:
    resolutions: dict[str, Resolution] = field(default_factory=dict)
    warnings: list[ResolutionWarning] = field(default_factory=list)
    errors: list[ResolutionIssue] = field(default_factory=list)

    def located_stops(self, stops: Sequence[Stop]) -> list[Stop]:
        """Stops with their resolved coordinate, input order kept, failures dropped."""
        located: list[Stop] = []
        for stop in stops:
            resolution = self.resolutions.get(stop.id)
            if resolution is not None:
                located.append(stop.with_coordinate(resolution.coordinate))
        return located


def build_queries(address: Address) -> list[str]:
    """Query variants from most to least specific."""
    variants = [
        f"{address.street} {address.house_number} {address.postal_code} {address.city}",
        f"{address.postal_code} {address.house_number}",
        f"{address.street} {address.house_number} {address.city}",
    ]
    queries: list[str] = []
    for variant in variants:
        normalized = " ".join(variant.split())
        if normalized and normalized not in queries:
            queries.append(normalized)
    return queries


def default_geocode_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.geocode_max_retries,
        base_delay=settings.geocode_backoff_seconds,
        timeout=settings.geocode_timeout_seconds,
    )


class CoordinateResolver:
    """Resolve stops to coordinates through an injected provider.

    ``resolve`` never raises: when no acceptable provider candidate exists it
    returns the postal-code fallback flagged as approximate. Provider results
    are cached by normalized address; fallbacks are not, so a later run can
    still reach the provider.
    """

    def __init__(
        self,
        provider: GeocodeProvider | None = None,
        *,
        cache: TTLCache[str, Resolution] | None = None,
        retry_policy: RetryPolicy | None = None,
        region: Sequence[float] | None = None,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
    ) -> None:
        self.provider = provider or NullGeocodeProvider()
        self.cache = cache
        self.retry_policy = retry_policy or default_geocode_retry_policy()
        self.region = tuple(region or settings.service_region)
        self.batch_size = batch_size or settings.geocode_batch_size
        self.batch_delay_seconds = (
            batch_delay_seconds if batch_delay_seconds is not None else settings.geocode_batch_delay_seconds
        )
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    def _fallback(self, stop: Stop, reason: str) -> Resolution:
        location = fallback_location(stop.address)
        logger.warning(f"Using approximate location for stop {stop.id} ({location.region}): {reason}")
        return Resolution(
            stop_id=stop.id,
            coordinate=location.coordinate,
            confidence=location.confidence,
            accuracy=location.accuracy,
            source=ResolutionSource.FALLBACK,
            formatted=f"{stop.address.formatted()} (regio {location.region})",
            provider="fallback",
            reason=reason,
        )

    async def _lookup(self, query: str) -> list[GeocodeCandidate]:
        return await self.retry_policy.run(
            functools.partial(self.provider.geocode, query),
            description=f"{self.provider.name} geocode '{query}'",
        )

    async def resolve(self, stop: Stop) -> Resolution:
        if stop.coordinate is not None:
            if in_region(stop.coordinate, self.region):
                return Resolution(
                    stop_id=stop.id,
                    coordinate=stop.coordinate,
                    confidence=1.0,
                    accuracy=Accuracy.EXACT,
                    source=ResolutionSource.INPUT,
                    formatted=stop.address.formatted(),
                    provider="input",
                )
            logger.info(f"Supplied coordinate for stop {stop.id} is outside the service region; re-resolving")

        key = stop.address.normalized_key()
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Geocode cache hit for {key}")
                return replace(cached, stop_id=stop.id, source=ResolutionSource.CACHE)

        best: Optional[GeocodeCandidate] = None
        failures: list[str] = []
        for query in build_queries(stop.address):
            try:
                candidates = await self._lookup(query)
            except asyncio.TimeoutError:
                failures.append(f"timeout for '{query}'")
                continue
            except GeocodingError as exc:
                failures.append(str(exc))
                continue
            except Exception as exc:
                logger.warning(f"Unexpected geocoding error for stop {stop.id}: {exc}")
                failures.append(f"unexpected error: {exc}")
                continue

            accepted = next((c for c in candidates if in_region(c.coordinate, self.region)), None)
            if accepted is None:
                continue
            if best is None or accepted.confidence > best.confidence:
                best = accepted
            if accepted.confidence > HIGH_CONFIDENCE:
                break

        if best is None:
            if isinstance(self.provider, NullGeocodeProvider):
                reason = "no geocoding provider configured"
            elif failures:
                reason = f"geocoding failed ({failures[-1]})"
            else:
                reason = "no match inside the service region"
            return self._fallback(stop, reason)

        resolution = Resolution(
            stop_id=stop.id,
            coordinate=best.coordinate,
            confidence=best.confidence,
            accuracy=best.accuracy,
            source=ResolutionSource.PROVIDER,
            formatted=best.formatted,
            provider=self.provider.name,
        )
        if self.cache is not None:
            resolution = replace(self.cache.set(key, resolution), stop_id=stop.id)
        return resolution

    async def resolve_all(self, stops: Sequence[Stop]) -> ResolutionBatch:
        """Resolve stops in sequential batches of concurrent lookups."""
        batch = ResolutionBatch()
        chunks = [list(stops[i : i + self.batch_size]) for i in range(0, len(stops), self.batch_size)]
        for index, chunk in enumerate(chunks):
            results = await asyncio.gather(*(self.resolve(stop) for stop in chunk), return_exceptions=True)
            for stop, result in zip(chunk, results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, BaseException):
                    logger.error(f"Could not resolve stop {stop.id}: {result}")
                    batch.errors.append(ResolutionIssue(stop_id=stop.id, reason=f"unresolvable: {result}"))
                    continue
                batch.resolutions[stop.id] = result
                if result.is_fallback:
                    batch.warnings.append(
                        ResolutionWarning(stop_id=stop.id, reason=result.reason or "approximate location")
                    )
            if index < len(chunks) - 1 and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)

        logger.info(
            f"Resolved {len(batch.resolutions)}/{len(stops)} stops "
            f"({len(batch.warnings)} approximate, {len(batch.errors)} failed)"
        )
        return batch
