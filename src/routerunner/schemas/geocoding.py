"""Address, stop and geocoding request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Address, Coordinate, Stop


class CoordinateModel(BaseModel):
    longitude: float = Field(..., ge=-180.0, le=180.0)
    latitude: float = Field(..., ge=-90.0, le=90.0)

    def to_domain(self) -> Coordinate:
        return Coordinate(longitude=self.longitude, latitude=self.latitude)


class AddressModel(BaseModel):
    street: str = Field(..., min_length=1)
    house_number: str = ""
    postal_code: str = ""
    city: str = ""

    def to_domain(self) -> Address:
        return Address(
            street=self.street.strip(),
            house_number=self.house_number.strip(),
            postal_code=self.postal_code.strip().upper(),
            city=self.city.strip(),
        )


class StopModel(BaseModel):
    id: str = Field(..., min_length=1, description="Stable identifier carried through the whole plan.")
    address: AddressModel
    coordinate: Optional[CoordinateModel] = Field(
        default=None, description="Known location; skips geocoding when inside the service region."
    )
    category: Optional[int] = Field(default=None, ge=0, description="Optional package type used for grouping.")

    def to_domain(self) -> Stop:
        return Stop(
            id=self.id,
            address=self.address.to_domain(),
            coordinate=self.coordinate.to_domain() if self.coordinate else None,
            category=self.category,
        )


class GeocodeRequest(BaseModel):
    stops: List[StopModel] = Field(..., min_length=1)
    provider: Optional[str] = Field(default=None, description="'pdok' or 'none'; defaults to the configured geocoder.")


class GeocodeResultModel(BaseModel):
    stop_id: str
    longitude: float
    latitude: float
    confidence: float
    accuracy: str
    source: str
    formatted: str
    provider: str
    reason: Optional[str] = None


class IssueModel(BaseModel):
    stop_id: str
    reason: str


class GeocodeResponse(BaseModel):
    results: List[GeocodeResultModel]
    warnings: List[IssueModel]
    errors: List[IssueModel]
