"""Route group exports."""

from . import geocoding, health, routes

__all__ = ["geocoding", "health", "routes"]
