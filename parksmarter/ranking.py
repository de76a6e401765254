"""Ordering rules for search results.

Ranking and truncation are kept apart: the ``rank_*`` functions only order,
``truncate`` only cuts. Python's sort is stable, so equal keys keep the order
the candidates arrived in.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from parksmarter.models import ParkingSpot, ScoredParkingResult

T = TypeVar("T")


def rank_eco_first(results: Sequence[ScoredParkingResult]) -> list[ScoredParkingResult]:
    """Eco-friendly spots first, then nearest to the destination."""

    return sorted(
        results,
        key=lambda r: (not r.is_eco_friendly, r.distance_from_destination_m),
    )


def rank_by_availability(results: Sequence[ScoredParkingResult]) -> list[ScoredParkingResult]:
    """Most free spaces first, then nearest to the destination."""

    return sorted(
        results,
        key=lambda r: (-r.available_spaces, r.distance_from_destination_m),
    )


def rank_spots_by_availability(spots: Sequence[ParkingSpot]) -> list[ParkingSpot]:
    """Most free spaces first, for listings with no destination."""

    return sorted(spots, key=lambda s: -s.available_spaces)


def truncate(items: Sequence[T], limit: int) -> list[T]:
    return list(items[: max(0, int(limit))])
