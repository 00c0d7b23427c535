"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ...config import settings
from ...models.domain import Coordinate, ResolutionIssue, ResolutionWarning

HOME_BASE_ID = "home"


class InvalidConfigurationError(ValueError):
    """Planner configuration that cannot produce a route."""


class PlanMode(str, Enum):
    MULTI_MODAL = "multi_modal"
    WALKING = "walking"


class TravelMode(str, Enum):
    WALKING = "walking"
    CYCLING = "cycling"


@dataclass(slots=True)
class PlannerConfig:
    max_walking_distance_m: float = field(default_factory=lambda: settings.max_walking_distance_m)
    preferred_cluster_size: int = field(default_factory=lambda: settings.preferred_cluster_size)
    walking_speed_kmh: float = field(default_factory=lambda: settings.walking_speed_kmh)
    cycling_speed_kmh: float = field(default_factory=lambda: settings.cycling_speed_kmh)
    bike_parking_time_s: float = field(default_factory=lambda: settings.bike_parking_time_s)
    home_base: Optional[Coordinate] = None
    multi_modal_enabled: bool = True
    prioritize_category_grouping: bool = False
    single_mode_two_opt: bool = field(default_factory=lambda: settings.single_mode_two_opt)

    def validate(self) -> None:
        for name in ("max_walking_distance_m", "walking_speed_kmh", "cycling_speed_kmh", "bike_parking_time_s"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidConfigurationError(f"{name} must be a finite number.")
        if self.preferred_cluster_size < 1:
            raise InvalidConfigurationError("preferred_cluster_size must be at least 1.")
        if self.walking_speed_kmh <= 0:
            raise InvalidConfigurationError("walking_speed_kmh must be positive.")
        if self.cycling_speed_kmh <= 0:
            raise InvalidConfigurationError("cycling_speed_kmh must be positive.")
        if self.max_walking_distance_m < 0:
            raise InvalidConfigurationError("max_walking_distance_m cannot be negative.")
        if self.bike_parking_time_s < 0:
            raise InvalidConfigurationError("bike_parking_time_s cannot be negative.")


@dataclass(frozen=True, slots=True)
class Cluster:
    """A walking-radius group of stops served from one parked bike.

    Instances come from ``clustering.make_cluster`` so the anchor, order and
    walking figures always agree with the members.
    """

    cluster_id: str
    member_ids: tuple[str, ...]
    anchor: Coordinate
    anchor_stop_id: str
    ordered_stop_ids: tuple[str, ...]
    walking_distance_m: float
    walking_time_min: float

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass(frozen=True, slots=True)
class ClusterSequence:
    cluster_ids: tuple[str, ...]
    cycling_distance_m: float
    cycling_time_min: float
    parking_time_min: float


@dataclass(frozen=True, slots=True)
class WalkingRoute:
    """Open walking path over all stops, used when clustering is off."""

    stop_ids: tuple[str, ...]
    distance_m: float
    time_min: float


@dataclass(frozen=True, slots=True)
class Leg:
    origin_id: str
    destination_id: str
    mode: TravelMode
    distance_m: float
    duration_min: float
    path: tuple[Coordinate, ...] = ()
    estimated: bool = False


@dataclass(frozen=True, slots=True)
class RoutePlan:
    plan_id: str
    mode: PlanMode
    clusters: tuple[Cluster, ...] = ()
    cluster_sequence: tuple[str, ...] = ()
    stop_sequence: tuple[str, ...] = ()
    home_base: Optional[Coordinate] = None
    total_walking_distance_m: float = 0.0
    total_walking_time_min: float = 0.0
    total_cycling_distance_m: float = 0.0
    total_cycling_time_min: float = 0.0
    total_parking_time_min: float = 0.0
    legs: tuple[Leg, ...] = ()
    warnings: tuple[ResolutionWarning, ...] = ()
    errors: tuple[ResolutionIssue, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_distance_m(self) -> float:
        return self.total_walking_distance_m + self.total_cycling_distance_m

    @property
    def total_time_min(self) -> float:
        return self.total_walking_time_min + self.total_cycling_time_min + self.total_parking_time_min

    @property
    def is_empty(self) -> bool:
        return not self.stop_sequence
