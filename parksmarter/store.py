"""Candidate stores: where parking spots and transit stops come from.

The search service only needs a rectangular range query per record type,
an availability filter and a few aggregate counts. Anything that provides
those can back it.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Protocol

from parksmarter.geo import BoundingBox
from parksmarter.models import HomeStats, ParkingSpot, TransitStop


class CandidateStore(Protocol):
    def parking_in_box(self, box: BoundingBox, available_only: bool = False) -> list[ParkingSpot]: ...

    def transit_in_box(self, box: BoundingBox) -> list[TransitStop]: ...

    def available_parking(self) -> list[ParkingSpot]: ...

    def home_stats(self) -> HomeStats: ...


class InMemoryStore:
    """Holds already-loaded records and scans them linearly."""

    def __init__(
        self,
        parking: Iterable[ParkingSpot] = (),
        transit: Iterable[TransitStop] = (),
    ):
        self.parking: list[ParkingSpot] = list(parking)
        self.transit: list[TransitStop] = list(transit)

    def parking_in_box(self, box: BoundingBox, available_only: bool = False) -> list[ParkingSpot]:
        return [
            s
            for s in self.parking
            if box.contains(s.location) and (not available_only or s.available)
        ]

    def transit_in_box(self, box: BoundingBox) -> list[TransitStop]:
        return [t for t in self.transit if box.contains(t.location)]

    def available_parking(self) -> list[ParkingSpot]:
        return [s for s in self.parking if s.available]

    def home_stats(self) -> HomeStats:
        with_spots = self.available_parking()
        return HomeStats(
            total_available_spots=sum(s.available_spaces for s in with_spots),
            total_locations=len(self.parking),
            locations_with_spots=len(with_spots),
            total_transport_stops=len(self.transit),
            transport_types=dict(Counter(t.transport_type for t in self.transit)),
        )
