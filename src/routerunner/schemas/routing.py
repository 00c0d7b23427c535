"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..services.routing.models import PlannerConfig
from .geocoding import CoordinateModel, IssueModel, StopModel


class PlannerOptions(BaseModel):
    """Overrides for the planner defaults. Values are checked by the planner itself."""

    max_walking_distance_m: Optional[float] = None
    preferred_cluster_size: Optional[int] = None
    walking_speed_kmh: Optional[float] = None
    cycling_speed_kmh: Optional[float] = None
    bike_parking_time_s: Optional[float] = None
    home_base: Optional[CoordinateModel] = None
    multi_modal_enabled: bool = True
    prioritize_category_grouping: bool = False
    single_mode_two_opt: Optional[bool] = None

    def to_config(self) -> PlannerConfig:
        config = PlannerConfig(
            home_base=self.home_base.to_domain() if self.home_base else None,
            multi_modal_enabled=self.multi_modal_enabled,
            prioritize_category_grouping=self.prioritize_category_grouping,
        )
        for name in (
            "max_walking_distance_m",
            "preferred_cluster_size",
            "walking_speed_kmh",
            "cycling_speed_kmh",
            "bike_parking_time_s",
            "single_mode_two_opt",
        ):
            value = getattr(self, name)
            if value is not None:
                setattr(config, name, value)
        return config


class RoutePlanRequest(BaseModel):
    stops: List[StopModel] = Field(default_factory=list)
    options: Optional[PlannerOptions] = None
    annotate_legs: bool = Field(default=True, description="Fetch street paths for every leg.")
    persist: bool = Field(default=False, description="Write summary.json and stops.csv under the data root.")


class ClusterModel(BaseModel):
    cluster_id: str
    anchor_stop_id: str
    anchor: List[float]
    member_ids: List[str]
    ordered_stop_ids: List[str]
    walking_distance_m: float
    walking_time_min: float


class LegModel(BaseModel):
    origin_id: str
    destination_id: str
    mode: str
    distance_m: float
    duration_min: float
    estimated: bool
    path: List[List[float]]


class TotalsModel(BaseModel):
    walking_distance_m: float
    walking_time_min: float
    cycling_distance_m: float
    cycling_time_min: float
    parking_time_min: float
    distance_m: float
    time_min: float


class RoutePlanResponse(BaseModel):
    plan_id: str
    mode: str
    created_at: datetime
    home_base: Optional[List[float]] = None
    cluster_sequence: List[str]
    stop_sequence: List[str]
    clusters: List[ClusterModel]
    legs: List[LegModel]
    totals: TotalsModel
    warnings: List[IssueModel]
    errors: List[IssueModel]
    output_dir: Optional[str] = None
