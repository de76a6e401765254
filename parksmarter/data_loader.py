from __future__ import annotations

import csv
import io
import json
import logging
import math
import os
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

import requests
from pydantic import ValidationError

from parksmarter.exceptions import DatasetError
from parksmarter.models import GeoPoint, ParkingSpot, RestrictionSchedule, TransitStop

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _polygon_centroid(ring: list) -> tuple[float, float] | None:
    # ring: [[lon, lat], ...]
    pts = [
        (float(p[0]), float(p[1]))
        for p in ring
        if isinstance(p, (list, tuple)) and len(p) >= 2
    ]
    if len(pts) < 3:
        return None

    # Shoelace formula (in lon/lat space; good enough for a city block)
    area2 = 0.0
    cx = 0.0
    cy = 0.0
    for (x1, y1), (x2, y2) in zip(pts, pts[1:]):
        cross = x1 * y2 - x2 * y1
        area2 += cross
        cx += (x1 + x2) * cross
        cy += (y1 + y2) * cross

    if abs(area2) < 1e-12:
        return _mean_point(pts)

    return (cx / (3.0 * area2), cy / (3.0 * area2))


def _mean_point(pts: list[tuple[float, float]]) -> tuple[float, float] | None:
    if not pts:
        return None
    return (sum(p[0] for p in pts) / len(pts), sum(p[1] for p in pts) / len(pts))


def _geom_to_point_latlon(geom: dict) -> tuple[float, float] | None:
    if not isinstance(geom, dict):
        return None

    gtype = geom.get("type")
    coords = geom.get("coordinates")

    if gtype == "Point" and isinstance(coords, (list, tuple)) and len(coords) >= 2:
        return (float(coords[1]), float(coords[0]))

    # Road segments: use the midpoint of the vertices
    if gtype == "LineString" and isinstance(coords, list):
        c = _mean_point(
            [(float(p[0]), float(p[1])) for p in coords if isinstance(p, (list, tuple)) and len(p) >= 2]
        )
    elif gtype == "Polygon" and isinstance(coords, list) and coords:
        c = _polygon_centroid(coords[0]) if isinstance(coords[0], list) else None
    elif gtype == "MultiPolygon" and isinstance(coords, list) and coords:
        # pick centroid of first polygon outer ring
        first = coords[0]
        c = _polygon_centroid(first[0]) if isinstance(first, list) and first and isinstance(first[0], list) else None
    else:
        return None

    if c is None:
        return None
    lon, lat = c
    return (float(lat), float(lon))


def _try_parse_float(v: object) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    s = str(v).strip()
    if s == "":
        return None
    try:
        return float(s)
    except ValueError:
        return None


def _try_parse_int(v: object) -> int | None:
    f = _try_parse_float(v)
    if f is None or not math.isfinite(f):
        return None
    return int(f)


def _row_get(row: dict, keys: Iterable[str]) -> object | None:
    for k in keys:
        if k in row and row[k] not in (None, ""):
            return row[k]
    return None


def _row_text(row: dict, keys: Iterable[str]) -> str | None:
    v = _row_get(row, keys)
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _row_point(row: dict) -> GeoPoint | None:
    lat = _try_parse_float(_row_get(row, ["Latitude", "latitude", "lat", "stop_lat", "LAT", "Y"]))
    lon = _try_parse_float(
        _row_get(row, ["Longitude", "longitude", "lon", "lng", "stop_lon", "LON", "X"])
    )
    if lat is None or lon is None:
        return None
    try:
        return GeoPoint(lat=lat, lon=lon)
    except ValidationError:
        return None


def normalize_parking(row: dict, idx: int) -> ParkingSpot | None:
    point = _row_point(row)
    if point is None:
        return None

    description = _row_text(
        row, ["RoadSegmentDescription", "road_segment_description", "description", "name"]
    ) or f"Parking segment {idx + 1}"
    available = _try_parse_int(_row_get(row, ["available_parks", "availableSpots", "available"]))

    return ParkingSpot(
        description=description,
        location=point,
        available_spaces=max(0, available or 0),
        restriction=RestrictionSchedule(
            days=_row_text(row, ["Restriction_Days", "restriction_days", "restrictionDays"]),
            start=_row_text(row, ["Restriction_Start", "restriction_start", "restrictionStart"]),
            end=_row_text(row, ["Restriction_End", "restriction_end", "restrictionEnd"]),
            display=_row_text(row, ["Restriction_Display", "restriction_display", "restrictionDisplay"]),
        ),
        price=_row_text(row, ["price", "Price"]),
    )


def normalize_transit(row: dict, idx: int) -> TransitStop | None:
    point = _row_point(row)
    if point is None:
        return None

    stop_id = str(_row_get(row, ["stop_id", "stopId", "id", "ID"]) or idx)
    name = _row_text(row, ["stop_name", "stopName", "name"]) or stop_id
    transport_type = (
        _row_text(row, ["transport_type", "transportType", "mode", "category"]) or "unknown"
    ).lower()

    return TransitStop(stop_id=stop_id, name=name, transport_type=transport_type, location=point)


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    records: list[T]
    source: str
    skipped: int = 0


def _rows_from_json(obj: Any, source: str) -> list[dict]:
    if isinstance(obj, dict) and "features" in obj:
        # GeoJSON FeatureCollection
        rows: list[dict] = []
        for feat in obj.get("features") or []:
            props = feat.get("properties", {}) if isinstance(feat, dict) else {}
            geom = feat.get("geometry", {}) if isinstance(feat, dict) else {}
            row = dict(props) if isinstance(props, dict) else {}

            try:
                ll = _geom_to_point_latlon(geom)
            except (TypeError, ValueError):
                # Garbled coordinates leave the row without a point; it is skipped later
                ll = None
            if ll is not None:
                lat, lon = ll
                row.setdefault("Latitude", lat)
                row.setdefault("Longitude", lon)
            rows.append(row)
        return rows

    if isinstance(obj, dict) and isinstance(obj.get("data"), list):
        obj = obj["data"]

    if isinstance(obj, list):
        return [row for row in obj if isinstance(row, dict)]

    raise DatasetError(source, "unsupported JSON structure")


def _normalize_rows(
    rows: list[dict],
    normalize: Callable[[dict, int], T | None],
    source: str,
) -> LoadResult[T]:
    records: list[T] = []
    skipped = 0
    for idx, row in enumerate(rows):
        rec = normalize(row, idx)
        if rec is None:
            skipped += 1
            continue
        records.append(rec)

    if skipped:
        logger.warning("Skipped %d rows without usable coordinates in %s", skipped, source)
    logger.info("Loaded %d records from %s", len(records), source)
    return LoadResult(records=records, source=source, skipped=skipped)


def _read_rows_from_file(path: str) -> list[dict]:
    if not os.path.exists(path):
        raise DatasetError(path, "file not found. Put a CSV/GeoJSON/JSON file there or set a source URL.")

    ext = os.path.splitext(path)[1].lower()
    if ext not in (".csv", ".json", ".geojson"):
        raise DatasetError(path, f"unsupported file extension {ext!r} (expected .csv/.json/.geojson)")

    try:
        if ext == ".csv":
            with open(path, "r", encoding="utf-8-sig", newline="") as f:
                return list(csv.DictReader(f))

        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except json.JSONDecodeError as e:
        raise DatasetError(path, f"invalid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise DatasetError(path, f"not valid UTF-8: {e}") from e
    except (OSError, csv.Error) as e:
        raise DatasetError(path, f"could not read file: {e}") from e
    return _rows_from_json(obj, path)


def _read_rows_from_url(url: str, timeout_s: float) -> list[dict]:
    headers = {"User-Agent": "ParkSmarter/1.0"}
    try:
        r = requests.get(url, headers=headers, timeout=timeout_s)
        r.raise_for_status()
    except requests.RequestException as e:
        raise DatasetError(url, f"download failed: {e}") from e

    content_type = r.headers.get("Content-Type", "")
    if "csv" in content_type or url.lower().endswith(".csv"):
        try:
            return list(csv.DictReader(io.StringIO(r.text)))
        except csv.Error as e:
            raise DatasetError(url, f"invalid CSV: {e}") from e

    try:
        obj = r.json()
    except ValueError as e:
        raise DatasetError(url, f"invalid JSON: {e}") from e
    return _rows_from_json(obj, url)


def load_parking_from_file(path: str) -> LoadResult[ParkingSpot]:
    return _normalize_rows(_read_rows_from_file(path), normalize_parking, path)


def load_transit_from_file(path: str) -> LoadResult[TransitStop]:
    return _normalize_rows(_read_rows_from_file(path), normalize_transit, path)


def load_parking_from_url(url: str, timeout_s: float = 10.0) -> LoadResult[ParkingSpot]:
    return _normalize_rows(_read_rows_from_url(url, timeout_s), normalize_parking, url)


def load_transit_from_url(url: str, timeout_s: float = 10.0) -> LoadResult[TransitStop]:
    return _normalize_rows(_read_rows_from_url(url, timeout_s), normalize_transit, url)
