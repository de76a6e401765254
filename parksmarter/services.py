from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any

from parksmarter.config import Settings, settings as default_settings
from parksmarter.eco import classify
from parksmarter.exceptions import DependencyFailure, InvalidInput
from parksmarter.geo import BoundingBox
from parksmarter.models import GeoPoint, HomeStats, NearbyStop, ParkingSpot, ScoredParkingResult
from parksmarter.proximity import BoxQuery, find_within_radius
from parksmarter.ranking import (
    rank_by_availability,
    rank_eco_first,
    rank_spots_by_availability,
    truncate,
)
from parksmarter.store import CandidateStore

logger = logging.getLogger(__name__)


def _parse_float_arg(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return None
        try:
            return float(s)
        except ValueError:
            return None
    return None


def parse_coordinate(value: Any, field: str, limit: float) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInput(field, f"{field} is required")
    v = _parse_float_arg(value)
    if v is None or not math.isfinite(v):
        raise InvalidInput(field, f"{field} must be a number")
    if not -limit <= v <= limit:
        raise InvalidInput(field, f"{field} must be between {-limit:g} and {limit:g}")
    return v


def parse_point(lat: Any, lng: Any, lat_field: str, lng_field: str) -> GeoPoint:
    return GeoPoint(
        lat=parse_coordinate(lat, lat_field, 90.0),
        lon=parse_coordinate(lng, lng_field, 180.0),
    )


def parse_radius(value: Any, default_km: float) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default_km
    v = _parse_float_arg(value)
    if v is None or not math.isfinite(v) or v < 0:
        raise InvalidInput("radius", "radius must be a non-negative number of kilometers")
    return v


class SearchService:
    """Runs the parking and transit searches against an injected candidate store."""

    def __init__(self, store: CandidateStore, settings: Settings = default_settings):
        self.store = store
        self.settings = settings

    def _guarded(self, what: str, query: BoxQuery) -> BoxQuery:
        def run(box: BoundingBox):
            try:
                return query(box)
            except DependencyFailure:
                raise
            except Exception as e:
                logger.exception("Candidate store failed while fetching %s", what)
                raise DependencyFailure(f"Could not fetch {what}: {e}") from e

        return run

    def _parking_source(self, available_only: bool) -> BoxQuery:
        return self._guarded(
            "parking spots",
            lambda box: self.store.parking_in_box(box, available_only=available_only),
        )

    def _transit_source(self) -> BoxQuery:
        return self._guarded("transit stops", self.store.transit_in_box)

    def find_transit_stops(self, latitude: Any, longitude: Any, radius: Any = None) -> list[NearbyStop]:
        """Transit stops within ``radius`` km of the point, nearest first."""
        center = parse_point(latitude, longitude, "latitude", "longitude")
        radius_km = parse_radius(radius, self.settings.transit_default_radius_km)
        logger.info(
            "Searching for transport stops near %s, %s within %gkm", center.lat, center.lon, radius_km
        )

        radius_m = radius_km * 1000.0
        found = find_within_radius(center, radius_km, self._transit_source())
        stops = [NearbyStop(stop=s, distance_m=d) for s, d in found if d <= radius_m]
        stops.sort(key=lambda s: s.distance_m)
        stops = truncate(stops, self.settings.transit_stops_limit)

        logger.info("Returning %d transport stops within %gkm", len(stops), radius_km)
        return stops

    def recommend_parking(
        self, destination_lat: Any, destination_lng: Any, radius: Any = None
    ) -> list[ScoredParkingResult]:
        """Available parking near a destination, eco-friendly spots first.

        Transit is searched over a wider circle than parking so a spot near the
        edge still sees the stops just outside the parking radius.
        """
        destination = parse_point(destination_lat, destination_lng, "destinationLat", "destinationLng")
        radius_km = parse_radius(radius, self.settings.parking_default_radius_km)
        logger.info(
            "Finding parking near %s, %s within %gkm", destination.lat, destination.lon, radius_km
        )

        parking = find_within_radius(destination, radius_km, self._parking_source(available_only=True))
        transit = find_within_radius(
            destination,
            radius_km * self.settings.transit_radius_multiplier,
            self._transit_source(),
        )
        stops = [stop for stop, _ in transit]

        scored: list[ScoredParkingResult] = []
        for spot, distance_m in parking:
            eco = classify(spot, stops, eco_radius_m=self.settings.eco_radius_m)
            logger.debug(
                "Spot %r: %d available, %d stops within %gm, nearest %.0fm",
                spot.description,
                spot.available_spaces,
                len(eco.nearby_stops),
                self.settings.eco_radius_m,
                eco.walk_to_nearest_transit_m,
            )
            scored.append(
                ScoredParkingResult(
                    spot=spot,
                    distance_from_destination_m=distance_m,
                    walk_to_nearest_transit_m=eco.walk_to_nearest_transit_m,
                    is_eco_friendly=eco.is_eco_friendly,
                    nearby_stops=eco.nearby_stops,
                )
            )

        results = truncate(rank_eco_first(scored), self.settings.recommendations_limit)
        logger.info("Returning %d parking recommendations", len(results))
        return results

    def search_parking(
        self, destination_lat: Any, destination_lng: Any, radius: Any = None
    ) -> list[ScoredParkingResult]:
        """Parking near a destination, most free spaces first. No transit lookup."""
        destination = parse_point(destination_lat, destination_lng, "destinationLat", "destinationLng")
        radius_km = parse_radius(radius, self.settings.parking_default_radius_km)
        logger.info(
            "Simple parking search near %s, %s within %gkm", destination.lat, destination.lon, radius_km
        )

        parking = find_within_radius(destination, radius_km, self._parking_source(available_only=False))
        scored = [
            ScoredParkingResult(spot=spot, distance_from_destination_m=d) for spot, d in parking
        ]

        results = truncate(rank_by_availability(scored), self.settings.simple_search_limit)
        logger.info("Returning %d simple parking results", len(results))
        return results

    def top_parking(self) -> list[ParkingSpot]:
        try:
            spots = self.store.available_parking()
        except DependencyFailure:
            raise
        except Exception as e:
            logger.exception("Candidate store failed while fetching available parking")
            raise DependencyFailure(f"Could not fetch available parking: {e}") from e

        results = truncate(rank_spots_by_availability(spots), self.settings.top_parking_limit)
        logger.info("Returning %d top parking spots", len(results))
        return results

    def home_stats(self) -> HomeStats:
        try:
            return self.store.home_stats()
        except DependencyFailure:
            raise
        except Exception as e:
            logger.exception("Candidate store failed while computing statistics")
            raise DependencyFailure(f"Could not compute statistics: {e}") from e


def _round_m(d: float) -> int | None:
    if not math.isfinite(d):
        return None
    return int(round(d))


def transit_stop_to_dict(item: NearbyStop) -> dict[str, Any]:
    stop = item.stop
    return {
        "stop_id": stop.stop_id,
        "stop_name": stop.name,
        "transport_type": stop.transport_type,
        "stop_lat": stop.location.lat,
        "stop_lon": stop.location.lon,
        "distanceMeters": float(item.distance_m),
    }


def recommendation_to_dict(result: ScoredParkingResult, index: int) -> dict[str, Any]:
    spot = result.spot
    return {
        "id": f"parking_{index + 1}",
        "name": spot.description,
        "lat": spot.location.lat,
        "lng": spot.location.lon,
        "type": result.type_label,
        "available": spot.available,
        "availableSpots": spot.available_spaces,
        "price": spot.price_display,
        "isEcoFriendly": result.is_eco_friendly,
        "nearbyStops": [transit_stop_to_dict(s) for s in result.nearby_stops],
        "walkToNearestTransit": _round_m(result.walk_to_nearest_transit_m),
        "distanceFromDestination": _round_m(result.distance_from_destination_m),
        "restrictionDays": spot.restriction.days,
        "restrictionStart": spot.restriction.start,
        "restrictionEnd": spot.restriction.end,
    }


def simple_result_to_dict(result: ScoredParkingResult, index: int) -> dict[str, Any]:
    spot = result.spot
    return {
        "id": f"simple_parking_{index + 1}",
        "name": spot.description,
        "availableSpots": spot.available_spaces,
        "distanceFromDestination": _round_m(result.distance_from_destination_m),
        "restrictionDays": spot.restriction.days,
        "restrictionStart": spot.restriction.start,
        "restrictionEnd": spot.restriction.end,
        "price": spot.price_display,
        "latitude": spot.location.lat,
        "longitude": spot.location.lon,
    }


def top_spot_to_dict(spot: ParkingSpot, index: int) -> dict[str, Any]:
    return {
        "id": f"top_parking_{index + 1}",
        "name": spot.description,
        "availableSpots": spot.available_spaces,
        "price": spot.price_display,
    }


def home_stats_to_dict(stats: HomeStats, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    return {
        "totalAvailableSpots": stats.total_available_spots,
        "totalLocations": stats.total_locations,
        "locationsWithSpots": stats.locations_with_spots,
        "totalTransportStops": stats.total_transport_stops,
        "transportTypes": [
            {"transport_type": t, "count": n} for t, n in sorted(stats.transport_types.items())
        ],
        "lastUpdated": now.isoformat(),
    }
