"""Factory for geocoding providers based on caller selection."""

from __future__ import annotations

from typing import Any

from .base import GeocodeProvider, NullGeocodeProvider
from .pdok import PDOKGeocoder


def get_provider(name: str, **kwargs: Any) -> GeocodeProvider:
    match name.strip().lower():
        case "pdok":
            return PDOKGeocoder(**kwargs)
        case "none" | "offline":
            return NullGeocodeProvider()
        case _:
            raise ValueError(f"Unknown geocoding provider '{name}'.")
