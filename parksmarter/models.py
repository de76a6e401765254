from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class RestrictionSchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    days: str | None = None
    start: str | None = None
    end: str | None = None
    display: str | None = None


class ParkingSpot(BaseModel):
    """A road segment with live bay availability."""

    model_config = ConfigDict(frozen=True)

    description: str
    location: GeoPoint
    available_spaces: int = Field(ge=0)
    restriction: RestrictionSchedule = RestrictionSchedule()
    price: str | None = None

    @property
    def available(self) -> bool:
        return self.available_spaces > 0

    @property
    def price_display(self) -> str | None:
        return self.price if self.price is not None else self.restriction.display


class TransitStop(BaseModel):
    model_config = ConfigDict(frozen=True)

    stop_id: str
    name: str
    transport_type: str
    location: GeoPoint


# Request bodies. Coordinates are accepted loosely and validated by the search
# service so that a missing or garbled field (booleans included) is reported
# by name.
Coordinate = Any


class TransportStopsQuery(BaseModel):
    latitude: Coordinate = None
    longitude: Coordinate = None
    radius: Coordinate = None


class DestinationQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination_lat: Coordinate = Field(default=None, alias="destinationLat")
    destination_lng: Coordinate = Field(default=None, alias="destinationLng")
    radius: Coordinate = None


@dataclass(frozen=True)
class NearbyStop:
    stop: TransitStop
    distance_m: float


@dataclass(frozen=True)
class ScoredParkingResult:
    """A parking spot scored against a destination and the transit around it.

    ``walk_to_nearest_transit_m`` is ``math.inf`` when no transit stop was
    found in the wider search area.
    """

    spot: ParkingSpot
    distance_from_destination_m: float
    walk_to_nearest_transit_m: float = math.inf
    is_eco_friendly: bool = False
    nearby_stops: list[NearbyStop] = field(default_factory=list)

    @property
    def type_label(self) -> str:
        return "Transit Hub" if self.nearby_stops else "Street Parking"

    @property
    def available_spaces(self) -> int:
        return self.spot.available_spaces


@dataclass(frozen=True)
class HomeStats:
    total_available_spots: int
    total_locations: int
    locations_with_spots: int
    total_transport_stops: int
    transport_types: dict[str, int]
