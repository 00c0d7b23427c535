"""Geocoding endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...config import settings
from ...schemas.geocoding import GeocodeRequest, GeocodeResponse, GeocodeResultModel, IssueModel
from ...services.geocoding import CoordinateResolver, get_provider
from ...services.routing.service import default_resolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["geocoding"])


@router.post("/geocode", response_model=GeocodeResponse, status_code=status.HTTP_200_OK)
async def geocode(payload: GeocodeRequest) -> GeocodeResponse:
    """Resolve stops to coordinates without planning a route."""
    try:
        if payload.provider and payload.provider.strip().lower() != settings.geocoder:
            resolver = CoordinateResolver(get_provider(payload.provider))
        else:
            resolver = default_resolver()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    stops = [stop.to_domain() for stop in payload.stops]
    try:
        batch = await resolver.resolve_all(stops)
    except Exception as exc:
        logger.exception(f"Error geocoding stops: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to geocode stops: {str(exc)}",
        ) from exc
    finally:
        await resolver.provider.aclose()

    return GeocodeResponse(
        results=[
            GeocodeResultModel(
                stop_id=result.stop_id,
                longitude=result.coordinate.longitude,
                latitude=result.coordinate.latitude,
                confidence=result.confidence,
                accuracy=result.accuracy.value,
                source=result.source.value,
                formatted=result.formatted,
                provider=result.provider,
                reason=result.reason,
            )
            for stop in stops
            if (result := batch.resolutions.get(stop.id)) is not None
        ],
        warnings=[IssueModel(stop_id=w.stop_id, reason=w.reason) for w in batch.warnings],
        errors=[IssueModel(stop_id=e.stop_id, reason=e.reason) for e in batch.errors],
    )
