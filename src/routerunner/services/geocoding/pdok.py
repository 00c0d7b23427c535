"""Async client for the PDOK Locatieserver (official Dutch address register)."""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx

from ...config import settings
from ...models.domain import Accuracy, Coordinate
from .base import GeocodeCandidate, GeocodeProvider, GeocodingError

logger = logging.getLogger(__name__)

# Locatieserver reports Solr relevance, not a probability; confidence comes from the match type.
ADDRESS_CONFIDENCE = 0.9
AREA_CONFIDENCE = 0.5

_POINT_PATTERN = re.compile(r"POINT\s*\(\s*([-\d.eE]+)\s+([-\d.eE]+)\s*\)")


def parse_centroid(value: str) -> Coordinate:
    """Parse ``centroide_ll`` which is either ``POINT(lon lat)`` or ``"lat,lon"``."""
    match = _POINT_PATTERN.match(value.strip())
    if match:
        return Coordinate(longitude=float(match.group(1)), latitude=float(match.group(2)))
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise ValueError(f"Unrecognised centroid value '{value}'")
    lat, lon = (float(part) for part in parts)
    return Coordinate(longitude=lon, latitude=lat)


class PDOKGeocoder(GeocodeProvider):
    name = "pdok"

    def __init__(
        self,
        base_url: str | None = None,
        *,
        rows: int = 1,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.pdok_base_url).rstrip("/")
        self.rows = rows
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.geocode_timeout_seconds, connect=5.0),
                headers={"User-Agent": f"RouteRunner/{settings.app_version}"},
            )
        return self._client

    async def geocode(self, query: str) -> list[GeocodeCandidate]:
        params = {
            "q": query,
            "rows": str(self.rows),
            "fl": "id,weergavenaam,type,score,centroide_ll",
        }
        client = self._get_client()
        try:
            response = await client.get(f"{self.base_url}/free", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise GeocodingError(
                f"PDOK returned HTTP {status_code} for '{query}'",
                retryable=status_code == 429 or status_code >= 500,
            ) from exc
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise GeocodingError(f"PDOK request failed for '{query}': {exc}", retryable=True) from exc
        except ValueError as exc:
            raise GeocodingError(f"PDOK returned invalid JSON for '{query}'") from exc

        docs = (payload.get("response") or {}).get("docs") or []
        candidates: list[GeocodeCandidate] = []
        for doc in docs:
            centroid_value = doc.get("centroide_ll")
            if not centroid_value:
                continue
            try:
                coordinate = parse_centroid(str(centroid_value))
            except ValueError as exc:
                logger.warning(f"Skipping PDOK document {doc.get('id')}: {exc}")
                continue
            is_address = doc.get("type") == "adres"
            candidates.append(
                GeocodeCandidate(
                    coordinate=coordinate,
                    confidence=ADDRESS_CONFIDENCE if is_address else AREA_CONFIDENCE,
                    formatted=doc.get("weergavenaam") or query,
                    accuracy=Accuracy.EXACT if is_address else Accuracy.INTERPOLATED,
                    reference=doc.get("id"),
                )
            )
        return candidates

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
