import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parksmarter.config import Settings, settings
from parksmarter.data_loader import (
    load_parking_from_file,
    load_parking_from_url,
    load_transit_from_file,
    load_transit_from_url,
)
from parksmarter.exceptions import DependencyFailure, InvalidInput, ParkSmarterError
from parksmarter.models import DestinationQuery, TransportStopsQuery
from parksmarter.services import (
    SearchService,
    home_stats_to_dict,
    recommendation_to_dict,
    simple_result_to_dict,
    top_spot_to_dict,
    transit_stop_to_dict,
)
from parksmarter.sqlite_store import SqliteStore
from parksmarter.store import CandidateStore, InMemoryStore

logger = logging.getLogger(__name__)


def build_store(cfg: Settings) -> CandidateStore:
    """Pick the candidate store from configuration: SQLite if set, else datasets in memory."""
    if cfg.sqlite_path:
        logger.info("Using SQLite candidate store at %s", cfg.sqlite_path)
        return SqliteStore(cfg.sqlite_path)

    if cfg.parking_source_url:
        parking = load_parking_from_url(cfg.parking_source_url, timeout_s=cfg.http_timeout_s)
    else:
        parking = load_parking_from_file(cfg.parking_cache_path)

    if cfg.transit_source_url:
        transit = load_transit_from_url(cfg.transit_source_url, timeout_s=cfg.http_timeout_s)
    else:
        transit = load_transit_from_file(cfg.transit_cache_path)

    return InMemoryStore(parking=parking.records, transit=transit.records)


def _service(request: Request) -> SearchService:
    service: Optional[SearchService] = getattr(request.app.state, "service", None)
    if service is None:
        raise DependencyFailure("Parking data not loaded")
    return service


def create_app(store: Optional[CandidateStore] = None, cfg: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Load data on startup unless a store was handed in
        if app.state.service is None:
            try:
                app.state.service = SearchService(build_store(cfg), cfg)
            except ParkSmarterError as e:
                logger.error("Error loading parking data: %s", e)
        yield

    app = FastAPI(title="ParkSmarter Melbourne API", version="0.1.0", lifespan=lifespan)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = SearchService(store, cfg) if store is not None else None

    @app.exception_handler(InvalidInput)
    def invalid_input_handler(request: Request, exc: InvalidInput):
        return JSONResponse(status_code=400, content={"error": str(exc), "field": exc.field})

    @app.exception_handler(DependencyFailure)
    def dependency_failure_handler(request: Request, exc: DependencyFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": "Parking data source unavailable"},
        )

    @app.exception_handler(RequestValidationError)
    def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/")
    def root():
        return {"message": "ParkSmarter Melbourne API is running!"}

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data_loaded": app.state.service is not None,
        }

    @app.post("/api/transport-stops")
    def transport_stops(request: Request, query: Optional[TransportStopsQuery] = None) -> list[dict]:
        """
        Public transport stops near a point, nearest first.

        - **latitude, longitude**: Center point coordinates (required)
        - **radius**: Search radius in km (default: 2)
        """
        query = query or TransportStopsQuery()
        stops = _service(request).find_transit_stops(query.latitude, query.longitude, query.radius)
        return [transit_stop_to_dict(s) for s in stops]

    @app.post("/api/parking-recommendations")
    def parking_recommendations(request: Request, query: Optional[DestinationQuery] = None) -> list[dict]:
        """
        Up to three parking spots near a destination, eco-friendly ones first.

        - **destinationLat, destinationLng**: Destination coordinates (required)
        - **radius**: Search radius in km (default: 1)
        """
        query = query or DestinationQuery()
        results = _service(request).recommend_parking(
            query.destination_lat, query.destination_lng, query.radius
        )
        return [recommendation_to_dict(r, i) for i, r in enumerate(results)]

    @app.post("/api/simple-parking-search")
    def simple_parking_search(request: Request, query: Optional[DestinationQuery] = None) -> dict:
        query = query or DestinationQuery()
        results = _service(request).search_parking(
            query.destination_lat, query.destination_lng, query.radius
        )
        return {"status": "success", "data": [simple_result_to_dict(r, i) for i, r in enumerate(results)]}

    @app.get("/api/top-parking")
    def top_parking(request: Request) -> dict:
        spots = _service(request).top_parking()
        return {"status": "success", "data": [top_spot_to_dict(s, i) for i, s in enumerate(spots)]}

    @app.get("/api/home-stats")
    def home_stats(request: Request) -> dict:
        stats = _service(request).home_stats()
        return {"status": "success", "data": home_stats_to_dict(stats)}

    return app


logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

app = create_app()
