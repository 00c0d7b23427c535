"""Base classes for geocoding provider implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...models.domain import Accuracy, Coordinate


class GeocodingError(Exception):
    """Raised by providers when a lookup could not be performed."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


@dataclass(frozen=True, slots=True)
class GeocodeCandidate:
    coordinate: Coordinate
    confidence: float
    formatted: str
    accuracy: Accuracy
    reference: Optional[str] = None


class GeocodeProvider(ABC):
    """Contract for turning a free-text address query into candidates."""

    name: str = "provider"

    @abstractmethod
    async def geocode(self, query: str) -> list[GeocodeCandidate]:
        """Return candidates best-first. An empty list means no match."""
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class NullGeocodeProvider(GeocodeProvider):
    """Provider used when lookups are disabled; every stop falls back."""

    name = "none"

    async def geocode(self, query: str) -> list[GeocodeCandidate]:
        return []
