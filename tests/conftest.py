"""Shared test fixtures: a small Melbourne CBD dataset with fixed coordinates."""

import math
import sqlite3
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from parksmarter.config import Settings
from parksmarter.geo import EARTH_RADIUS_M
from parksmarter.main import create_app
from parksmarter.models import GeoPoint, ParkingSpot, RestrictionSchedule, TransitStop
from parksmarter.services import SearchService
from parksmarter.store import InMemoryStore

CBD = GeoPoint(lat=-37.8136, lon=144.9631)


def north(p: GeoPoint, meters: float) -> GeoPoint:
    """Point ``meters`` due north (negative for south) along the meridian."""
    return GeoPoint(lat=p.lat + math.degrees(meters / EARTH_RADIUS_M), lon=p.lon)


def east(p: GeoPoint, meters: float) -> GeoPoint:
    """Point at great-circle distance ``meters`` due east along p's parallel."""
    half = math.asin(math.sin(meters / (2 * EARTH_RADIUS_M)) / math.cos(math.radians(p.lat)))
    return GeoPoint(lat=p.lat, lon=p.lon + math.degrees(2 * half))


def make_spot(description: str, location: GeoPoint, available: int, display: str = "2P") -> ParkingSpot:
    return ParkingSpot(
        description=description,
        location=location,
        available_spaces=available,
        restriction=RestrictionSchedule(days="Mon-Fri", start="07:30", end="18:30", display=display),
    )


def make_stop(stop_id: str, location: GeoPoint, transport_type: str = "tram") -> TransitStop:
    return TransitStop(stop_id=stop_id, name=f"Stop {stop_id}", transport_type=transport_type, location=location)


@pytest.fixture()
def spot_a() -> ParkingSpot:
    # 100m north of the CBD point, 3 free bays
    return make_spot("Collins St between Swanston St and Elizabeth St", north(CBD, 100), 3)


@pytest.fixture()
def spot_b() -> ParkingSpot:
    # 600m south, only 1 free bay, but a stop right next to it
    return make_spot("Flinders Ln between Queen St and William St", north(CBD, -600), 1)


@pytest.fixture()
def store(spot_a: ParkingSpot, spot_b: ParkingSpot) -> InMemoryStore:
    full = make_spot("Bourke St between Russell St and Exhibition St", north(CBD, 300), 0)
    far = make_spot("Lygon St Carlton", north(CBD, 2500), 9)
    stops = [
        make_stop("A300", east(spot_a.location, 300)),
        make_stop("B50", north(spot_b.location, -50), "train"),
        make_stop("FAR", north(CBD, 5000), "bus"),
    ]
    return InMemoryStore(parking=[spot_a, spot_b, full, far], transit=stops)


@pytest.fixture()
def service(store: InMemoryStore) -> SearchService:
    return SearchService(store, Settings())


@pytest.fixture()
def client(store: InMemoryStore):
    with TestClient(create_app(store=store, cfg=Settings())) as c:
        yield c


@pytest.fixture()
def tmp_sqlite_db(tmp_path: Path, spot_a: ParkingSpot, spot_b: ParkingSpot) -> Path:
    """Create a small database with the live parking and transit tables."""
    db_path = tmp_path / "parking.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute(
        """
        CREATE TABLE available_parking_live (
            RoadSegmentDescription TEXT,
            available_parks INTEGER,
            Latitude REAL,
            Longitude REAL,
            Restriction_Days TEXT,
            Restriction_Start TEXT,
            Restriction_End TEXT,
            Restriction_Display TEXT
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE public_transport_stops (
            id INTEGER PRIMARY KEY,
            stop_id TEXT,
            stop_name TEXT,
            transport_type TEXT,
            stop_lat REAL,
            stop_lon REAL
        )
        """
    )
    parking_rows = [
        (spot_a.description, 3, spot_a.location.lat, spot_a.location.lon, "Mon-Fri", "07:30", "18:30", "2P"),
        (spot_b.description, 1, spot_b.location.lat, spot_b.location.lon, "Mon-Sat", "08:00", "20:00", "1P"),
        ("Bourke St", 0, north(CBD, 300).lat, CBD.lon, None, None, None, "4P"),
        ("Lygon St Carlton", 9, north(CBD, 2500).lat, CBD.lon, None, None, None, "2P"),
    ]
    conn.executemany("INSERT INTO available_parking_live VALUES (?, ?, ?, ?, ?, ?, ?, ?)", parking_rows)
    b50 = north(spot_b.location, -50)
    stop_rows = [
        (1, "B50", "Flinders Street Station", "train", b50.lat, b50.lon),
        (2, "T1", "Swanston St/Collins St", "tram", CBD.lat, CBD.lon),
        (3, "T2", "Elizabeth St/Collins St", "tram", north(CBD, 150).lat, CBD.lon),
    ]
    conn.executemany("INSERT INTO public_transport_stops VALUES (?, ?, ?, ?, ?, ?)", stop_rows)
    conn.commit()
    conn.close()
    return db_path
