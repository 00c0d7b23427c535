"""Address to coordinate resolution."""

from .base import GeocodeCandidate, GeocodeProvider, GeocodingError, NullGeocodeProvider
from .dispatcher import get_provider
from .fallback import fallback_location, postal_code_fallback
from .resolver import CoordinateResolver, Resolution, ResolutionBatch

__all__ = [
    "GeocodeCandidate",
    "GeocodeProvider",
    "GeocodingError",
    "NullGeocodeProvider",
    "get_provider",
    "fallback_location",
    "postal_code_fallback",
    "CoordinateResolver",
    "Resolution",
    "ResolutionBatch",
]
