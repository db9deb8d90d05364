"""
Wayfinder API — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings → stores → services → routers, registers
       middleware and exception handlers, and returns the app.
Who:   uvicorn (`uvicorn wayfinder.main:app`) and the test suite, which
       builds apps over temporary data directories or in-memory stores.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: RequestID → Logging → CORS → Auth → GZip    │
    │                                                          │
    │  Routes:                                                 │
    │   /about  /pois  /pois/{id}  /routes/compute  /routes  /routes/{id}  /health
    │                                                          │
    │  Services:  PoiService   RouteComputeService   RouteService
    │                 │               │       │          │     │
    │  Storage:   pois.json ◀─────────┘  GraphHopper  routes.json
    │                                                          │
    │  Errors:  {code, message, details} for every failure     │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from wayfinder import __version__
from wayfinder.config import Settings, settings as default_settings
from wayfinder.exceptions import (
    NotFoundError,
    RoutingEngineError,
    StorageError,
    ValidationError,
    WayfinderError,
)
from wayfinder.middleware.auth import AuthRateLimitMiddleware
from wayfinder.middleware.logging import RequestLoggingMiddleware
from wayfinder.middleware.request_id import RequestIDMiddleware, request_id_var
from wayfinder.routes import about, compute, health, pois, saved_routes
from wayfinder.schemas.common import summarize_errors
from wayfinder.services.graphhopper_client import GraphHopperClient
from wayfinder.services.poi_service import PoiService
from wayfinder.services.route_compute_service import RouteComputeService
from wayfinder.services.route_repository import RouteRepository
from wayfinder.services.route_service import RouteService
from wayfinder.storage import CollectionStore, JsonFileStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (Docker captures stdout). Called once from the lifespan.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Wayfinder API %s starting up...", __version__)

    # Misconfiguration is reported, not fatal: POIs and saved routes still work
    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("POI collection:   %s", app_settings.pois_path.resolve())
    logger.info("Route collection: %s", app_settings.routes_path.resolve())
    logger.info("GraphHopper:      %s", app_settings.graphhopper_url)
    logger.info("Auth gate:        %s", "enabled" if app_settings.auth_enabled else "DISABLED")
    logger.info("=" * 60)

    yield

    logger.info("Wayfinder API shut down.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _envelope(status_code: int, code: str, message: str, details=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": code, "message": message, "details": details},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the uniform {code, message, details} envelope.

    Handler hierarchy:
        ValidationError, RequestValidationError  → 400 invalid_request
        NotFoundError                            → 404 not_found
        RoutingEngineError                       → 502 graphhopper_error
        StorageError                             → 500 server_error (details hidden)
        WayfinderError (base)                    → its own code/status
        Exception (fallback)                     → 500 server_error
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Invalid request: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = summarize_errors(exc.errors())
        first = errors[0] if errors else {"loc": [], "msg": "invalid"}
        logger.warning("[%s] Invalid request parameters: %s", request_id_var.get(""), errors)
        return _envelope(
            400,
            ValidationError.code,
            f"{'.'.join(first['loc'])}: {first['msg']}",
            {"errors": errors},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(RoutingEngineError)
    async def handle_routing_engine_error(request: Request, exc: RoutingEngineError):
        logger.error(
            "[%s] GraphHopper failure (upstream status %d): %s",
            request_id_var.get(""),
            exc.upstream_status,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        # Paths and OS errors stay in the logs
        logger.error("[%s] Storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _envelope(exc.status_code, exc.code, exc.message)

    @app.exception_handler(WayfinderError)
    async def handle_wayfinder_error(request: Request, exc: WayfinderError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _envelope(500, "server_error", "An unexpected error occurred.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    *,
    poi_store: Optional[CollectionStore] = None,
    route_store: Optional[CollectionStore] = None,
    users_store: Optional[CollectionStore] = None,
    team_store: Optional[CollectionStore] = None,
    routing_engine: Optional[GraphHopperClient] = None,
) -> FastAPI:
    """
    Build a fully wired application.

    Args:
        app_settings:   Configuration; defaults to the environment-backed singleton.
        poi_store:      POI collection; defaults to a JsonFileStore at settings.pois_path.
        route_store:    Route collection; defaults to settings.routes_path.
        users_store:    API users; defaults to settings.users_path.
        team_store:     Roster for /about; defaults to settings.team_path.
        routing_engine: GraphHopper client; defaults to settings.graphhopper_url.
    """
    cfg = app_settings or default_settings

    poi_store = poi_store or JsonFileStore(cfg.pois_path)
    route_store = route_store or JsonFileStore(cfg.routes_path)
    users_store = users_store or JsonFileStore(cfg.users_path)
    team_store = team_store or JsonFileStore(cfg.team_path)
    routing_engine = routing_engine or GraphHopperClient(
        cfg.graphhopper_url, timeout=cfg.graphhopper_timeout
    )

    app = FastAPI(
        title="Wayfinder API",
        description=(
            "Points of interest, route computation through GraphHopper, "
            "and persisted shareable routes."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    poi_service = PoiService(poi_store)
    app.state.settings = cfg
    app.state.poi_store = poi_store
    app.state.route_store = route_store
    app.state.team_store = team_store
    app.state.routing_engine = routing_engine
    app.state.poi_service = poi_service
    app.state.route_service = RouteService(RouteRepository(route_store))
    app.state.route_compute_service = RouteComputeService(poi_service, routing_engine)

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in REVERSE order of addition:
    # RequestID → Logging → CORS → Auth → GZip → handler
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        AuthRateLimitMiddleware,
        users_store=users_store,
        enabled=cfg.auth_enabled,
        limit_per_minute=cfg.rate_limit_per_minute,
        block_minutes=cfg.rate_limit_block_minutes,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(about.router)
    # compute before the /routes/{id} family
    app.include_router(pois.router)
    app.include_router(compute.router)
    app.include_router(saved_routes.router)
    app.include_router(health.router)

    return app


app = create_app()
