from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol, TypeVar

from parksmarter.geo import BoundingBox, bounding_box, great_circle_distance
from parksmarter.models import GeoPoint

logger = logging.getLogger(__name__)


class Located(Protocol):
    @property
    def location(self) -> GeoPoint: ...


T = TypeVar("T", bound=Located)

# Given a bounding box, return every record whose coordinates fall inside it.
BoxQuery = Callable[[BoundingBox], Iterable[T]]


def find_within_radius(
    center: GeoPoint,
    radius_km: float,
    source: BoxQuery[T],
) -> list[tuple[T, float]]:
    """Return records within ``radius_km`` of ``center`` paired with their distance in meters.

    The source is asked for a rectangular superset of the circle; each
    candidate is then measured exactly and anything outside the circle is
    dropped. Order is whatever the source returned.
    """

    box = bounding_box(center, radius_km)
    radius_m = radius_km * 1000.0

    rows: list[tuple[T, float]] = []
    seen = 0
    for candidate in source(box):
        seen += 1
        d = great_circle_distance(center, candidate.location)
        if d > radius_m:
            continue
        rows.append((candidate, d))

    logger.debug(
        "proximity: %d candidates in box, %d within %.0fm of (%.6f, %.6f)",
        seen,
        len(rows),
        radius_m,
        center.lat,
        center.lon,
    )
    return rows
