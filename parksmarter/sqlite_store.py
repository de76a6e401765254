"""Read-only SQLite candidate store.

The bounding-box predicate and the availability filter are evaluated by
SQLite, so only the rectangle's rows ever reach Python.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from pathlib import Path

from pydantic import ValidationError

from parksmarter.exceptions import DependencyFailure
from parksmarter.geo import BoundingBox
from parksmarter.models import GeoPoint, HomeStats, ParkingSpot, RestrictionSchedule, TransitStop

logger = logging.getLogger(__name__)

PARKING_TABLE = "available_parking_live"
TRANSIT_TABLE = "public_transport_stops"

_PARKING_COLUMNS = (
    "RoadSegmentDescription, available_parks, Latitude, Longitude, "
    "Restriction_Days, Restriction_Start, Restriction_End, Restriction_Display"
)
_TRANSIT_COLUMNS = "stop_id, stop_name, transport_type, stop_lat, stop_lon"


def _text(v: object) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _parking_from_row(row: sqlite3.Row) -> ParkingSpot:
    return ParkingSpot(
        description=str(row["RoadSegmentDescription"]),
        location=GeoPoint(lat=float(row["Latitude"]), lon=float(row["Longitude"])),
        available_spaces=max(0, int(row["available_parks"] or 0)),
        restriction=RestrictionSchedule(
            days=_text(row["Restriction_Days"]),
            start=_text(row["Restriction_Start"]),
            end=_text(row["Restriction_End"]),
            display=_text(row["Restriction_Display"]),
        ),
    )


def _transit_from_row(row: sqlite3.Row) -> TransitStop:
    return TransitStop(
        stop_id=str(row["stop_id"]),
        name=str(row["stop_name"] or ""),
        transport_type=str(row["transport_type"] or "unknown"),
        location=GeoPoint(lat=float(row["stop_lat"]), lon=float(row["stop_lon"])),
    )


class SqliteStore:
    """
    Candidate store over a read-only SQLite database.

    A fresh connection is opened for every query. Requests are served from
    a threadpool and sqlite3 connections may not cross threads, so nothing
    is held between calls.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self.validate_tables([PARKING_TABLE, TRANSIT_TABLE])

    def _connect(self) -> sqlite3.Connection:
        if not self._path.is_file():
            raise DependencyFailure(f"SQLite database not found at: {self._path}")
        conn = sqlite3.connect(f"file:{self._path}?mode=ro", uri=True)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _fetch(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise DependencyFailure(f"Could not open {self._path}: {e}") from e
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise DependencyFailure(f"Query against {self._path} failed: {e}") from e
        finally:
            conn.close()

    def validate_tables(self, expected: list[str]) -> None:
        """
        Check that the database contains the expected tables.

        Raises DependencyFailure if any are missing.
        """
        rows = self._fetch("SELECT name FROM sqlite_master WHERE type='table'")
        actual = {row[0] for row in rows}
        missing = set(expected) - actual
        if missing:
            raise DependencyFailure(
                f"Invalid database at {self._path}: missing tables: {', '.join(sorted(missing))}"
            )

    def _build(self, rows: list[sqlite3.Row], factory) -> list:
        try:
            return [factory(row) for row in rows]
        except (ValidationError, TypeError, ValueError) as e:
            raise DependencyFailure(f"Malformed row in {self._path}: {e}") from e

    def parking_in_box(self, box: BoundingBox, available_only: bool = False) -> list[ParkingSpot]:
        sql = (
            f"SELECT {_PARKING_COLUMNS} FROM {PARKING_TABLE} "
            "WHERE Latitude BETWEEN ? AND ? AND Longitude BETWEEN ? AND ?"
        )
        if available_only:
            sql += " AND available_parks > 0"
        rows = self._fetch(sql, (box.min_lat, box.max_lat, box.min_lon, box.max_lon))
        return self._build(rows, _parking_from_row)

    def transit_in_box(self, box: BoundingBox) -> list[TransitStop]:
        sql = (
            f"SELECT {_TRANSIT_COLUMNS} FROM {TRANSIT_TABLE} "
            "WHERE stop_lat BETWEEN ? AND ? AND stop_lon BETWEEN ? AND ?"
        )
        rows = self._fetch(sql, (box.min_lat, box.max_lat, box.min_lon, box.max_lon))
        return self._build(rows, _transit_from_row)

    def available_parking(self) -> list[ParkingSpot]:
        rows = self._fetch(
            f"SELECT {_PARKING_COLUMNS} FROM {PARKING_TABLE} "
            "WHERE available_parks > 0 AND Latitude IS NOT NULL AND Longitude IS NOT NULL"
        )
        return self._build(rows, _parking_from_row)

    def home_stats(self) -> HomeStats:
        totals = self._fetch(
            f"SELECT COALESCE(SUM(CASE WHEN available_parks > 0 THEN available_parks END), 0), "
            f"COUNT(*), "
            f"SUM(CASE WHEN available_parks > 0 THEN 1 ELSE 0 END) "
            f"FROM {PARKING_TABLE}"
        )[0]
        stops = self._fetch(f"SELECT COUNT(*) FROM {TRANSIT_TABLE}")[0]
        types = self._fetch(
            f"SELECT transport_type, COUNT(*) FROM {TRANSIT_TABLE} GROUP BY transport_type"
        )
        counts: Counter[str] = Counter()
        for row in types:
            counts[str(row[0] or "unknown")] += int(row[1])
        return HomeStats(
            total_available_spots=int(totals[0] or 0),
            total_locations=int(totals[1] or 0),
            locations_with_spots=int(totals[2] or 0),
            total_transport_stops=int(stops[0] or 0),
            transport_types=dict(counts),
        )
