"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTERUNNER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "RouteRunner API"
    app_version: str = "1.0.0"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted route plans.")

    # Planner defaults (bike + walk)
    max_walking_distance_m: float = Field(default=400.0, ge=0.0)
    preferred_cluster_size: int = Field(default=8, ge=1)
    walking_speed_kmh: float = Field(default=5.0, gt=0.0)
    cycling_speed_kmh: float = Field(default=18.0, gt=0.0)
    bike_parking_time_s: float = Field(default=30.0, ge=0.0)
    single_mode_two_opt: bool = Field(
        default=False,
        description="Refine walking-only routes with 2-opt after nearest-neighbour construction.",
    )

    service_region: tuple[float, ...] = Field(
        default=(3.3, 50.7, 7.3, 53.6),
        description="Accepted geocoding area as (min_lon, min_lat, max_lon, max_lat).",
    )

    # Geocoding
    geocoder: str = Field(default="pdok", description="Geocoding provider: 'pdok' or 'none'.")
    pdok_base_url: str = Field(default="https://api.pdok.nl/bzk/locatieserver/search/v3_1")
    geocode_timeout_seconds: float = Field(default=10.0, gt=0.0)
    geocode_max_retries: int = Field(default=3, ge=0)
    geocode_backoff_seconds: float = Field(default=1.0, ge=0.0)
    geocode_batch_size: int = Field(default=5, ge=1)
    geocode_batch_delay_seconds: float = Field(default=1.0, ge=0.0)
    geocode_cache_ttl_seconds: float = Field(default=24 * 60 * 60, ge=0.0)

    # Street routing
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000). Unset disables street routing.",
    )
    osrm_timeout_seconds: float = Field(default=15.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    route_batch_size: int = Field(default=3, ge=1)
    route_batch_delay_seconds: float = Field(default=1.0, ge=0.0)
    route_cache_ttl_seconds: float = Field(default=60 * 60, ge=0.0)
    walking_detour_factor: float = Field(default=1.3, ge=1.0)
    cycling_detour_factor: float = Field(default=1.3, ge=1.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("service_region", mode="before")
    @classmethod
    def _parse_bounds_from_env(cls, value: Any) -> tuple[float, ...]:
        """Parse region bounds from a comma-separated string or JSON array."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = [item.strip() for item in value.split(",") if item.strip()]
            value = parsed
        bounds = tuple(float(item) for item in value)
        if len(bounds) != 4:
            raise ValueError("service_region needs four values: min_lon, min_lat, max_lon, max_lat")
        min_lon, min_lat, max_lon, max_lat = bounds
        if min_lon >= max_lon or min_lat >= max_lat:
            raise ValueError("service_region minimums must be below maximums")
        return bounds


settings = Settings()
