"""Route planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import RoutePlanRequest, RoutePlanResponse
from ...services.outputs.routing_formatter import route_plan_to_json
from ...services.routing import service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/plan", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
async def plan(payload: RoutePlanRequest) -> RoutePlanResponse:
    config = payload.options.to_config() if payload.options else None
    stops = [stop.to_domain() for stop in payload.stops]
    try:
        route_plan = await service.plan_route(stops, config, annotate_legs=payload.annotate_legs)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}",
        ) from exc

    output_dir = None
    if payload.persist:
        try:
            output_dir = service.persist_plan(route_plan)
        except OSError as exc:
            logger.warning(f"Failed to save plan {route_plan.plan_id}: {exc}")
    return RoutePlanResponse.model_validate({**route_plan_to_json(route_plan), "output_dir": output_dir})
