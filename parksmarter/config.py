from __future__ import annotations

import os

from pydantic import BaseModel


def _env_str(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, "").strip()
    return v or default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name, "").strip()
    if not v:
        return default
    try:
        return float(v)
    except ValueError:
        return default


class Settings(BaseModel):
    # Local cache files (CSV/GeoJSON/JSON). Used when no SQLite database is configured.
    parking_cache_path: str = "data/available_parking_live.csv"
    transit_cache_path: str = "data/public_transport_stops.csv"

    # If set, the datasets are downloaded from these URLs instead of read from disk.
    parking_source_url: str | None = None
    transit_source_url: str | None = None

    # Read-only SQLite database holding available_parking_live / public_transport_stops.
    sqlite_path: str | None = None

    http_timeout_s: float = 10.0
    log_level: str = "INFO"

    # Search engine constants
    eco_radius_m: float = 250.0
    transit_default_radius_km: float = 2.0
    parking_default_radius_km: float = 1.0
    transit_radius_multiplier: float = 2.0
    transit_stops_limit: int = 50
    recommendations_limit: int = 3
    simple_search_limit: int = 15
    top_parking_limit: int = 5

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            parking_cache_path=_env_str("PARKSMARTER_PARKING_PATH", defaults.parking_cache_path),
            transit_cache_path=_env_str("PARKSMARTER_TRANSIT_PATH", defaults.transit_cache_path),
            parking_source_url=_env_str("PARKSMARTER_PARKING_URL"),
            transit_source_url=_env_str("PARKSMARTER_TRANSIT_URL"),
            sqlite_path=_env_str("PARKSMARTER_SQLITE_PATH"),
            http_timeout_s=_env_float("PARKSMARTER_HTTP_TIMEOUT_S", defaults.http_timeout_s),
            log_level=(_env_str("PARKSMARTER_LOG_LEVEL", defaults.log_level) or "INFO").upper(),
        )


settings = Settings.from_env()
