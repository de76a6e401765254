from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from parksmarter.geo import great_circle_distance
from parksmarter.models import NearbyStop, ParkingSpot, TransitStop

ECO_RADIUS_M = 250.0


@dataclass(frozen=True)
class EcoClassification:
    nearby_stops: list[NearbyStop] = field(default_factory=list)
    walk_to_nearest_transit_m: float = math.inf
    is_eco_friendly: bool = False


def classify(
    spot: ParkingSpot,
    nearby_transit: Iterable[TransitStop],
    eco_radius_m: float = ECO_RADIUS_M,
) -> EcoClassification:
    """Classify a parking spot by how far it is from public transport.

    ``nearby_stops`` keeps the stops within ``eco_radius_m`` in input order.
    The walk distance is the minimum over every stop given, so a spot can
    report "400m to a stop" while still not counting as eco-friendly.
    """

    nearby: list[NearbyStop] = []
    nearest = math.inf
    for stop in nearby_transit:
        d = great_circle_distance(spot.location, stop.location)
        if d <= eco_radius_m:
            nearby.append(NearbyStop(stop=stop, distance_m=d))
        if d < nearest:
            nearest = d

    return EcoClassification(
        nearby_stops=nearby,
        walk_to_nearest_transit_m=nearest,
        is_eco_friendly=nearest <= eco_radius_m,
    )
