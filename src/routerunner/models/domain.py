"""Domain models for addresses, stops and coordinates."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point in degrees."""

    longitude: float
    latitude: float


@dataclass(frozen=True, slots=True)
class Address:
    """Structured postal address as supplied by the caller."""

    street: str
    house_number: str
    postal_code: str
    city: str

    def normalized_key(self) -> str:
        parts = (self.street, self.house_number, self.postal_code, self.city)
        return "_".join(" ".join(part.split()) for part in parts).lower()

    def formatted(self) -> str:
        return f"{self.street} {self.house_number}, {self.postal_code} {self.city}"


@dataclass(frozen=True, slots=True)
class Stop:
    """Represents one delivery target."""

    id: str
    address: Address
    coordinate: Optional[Coordinate] = None
    category: Optional[int] = None

    def with_coordinate(self, coordinate: Coordinate) -> "Stop":
        return replace(self, coordinate=coordinate)


class Accuracy(str, Enum):
    EXACT = "exact"
    INTERPOLATED = "interpolated"
    APPROXIMATE = "approximate"


class ResolutionSource(str, Enum):
    INPUT = "input"
    PROVIDER = "provider"
    CACHE = "cache"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class ResolutionWarning:
    """Non-fatal notice about a stop, e.g. an approximate location."""

    stop_id: str
    reason: str


@dataclass(frozen=True, slots=True)
class ResolutionIssue:
    """A stop that could not be placed and was left out of the plan."""

    stop_id: str
    reason: str
