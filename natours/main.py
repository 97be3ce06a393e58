"""
Natours Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires the request pipeline, the shared error handler,
       the route table and the not-found fallback, and returns the app.
Who:   uvicorn natours.main:app; tests call create_app() with overrides.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  PipelineMiddleware (one Starlette middleware, fixed order): │
    │   Headers → [Dev Log] → Rate Limit → Body → Sanitize         │
    │   → Dedupe Params → Static Files → Request Time              │
    │                                                              │
    │  Route Table:                                                │
    │   /api/v1/tours   /api/v1/users   /api/v1/reviews   /* 404   │
    │                                                              │
    │  GlobalErrorHandler (single instance, app.state):            │
    │   stage failures ─┐                                          │
    │   router raises ──┼──▶ normalize → classify → JSON response  │
    │   FastAPI errors ─┘                                          │
    └──────────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from natours import __version__
from natours.config import Settings, settings as default_settings
from natours.error_handler import GlobalErrorHandler
from natours.exceptions import NatoursError
from natours.middleware.pipeline import PipelineMiddleware, build_pipeline
from natours.middleware.rate_limit import RateLimitStore
from natours.routes import ROUTE_TABLE, fallback
from natours.services.review_service import ReviewService
from natours.services.tour_service import TourService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # The pipeline logs requests itself in development
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings
    setup_logging(config.log_level)
    logger.info("Natours backend starting in %s mode", config.environment)
    logger.info(
        "Rate limit: %d requests per %dms under %s",
        config.rate_limit_max,
        config.rate_limit_window_ms,
        config.rate_limit_scope,
    )
    logger.info("Serving static files from %s", config.public_dir)

    yield

    logger.info("Natours backend shut down.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Route FastAPI's own exception handling into the global error handler.

    Failures raised by routers that FastAPI handles internally (request
    validation, HTTPException, our NatoursError) would otherwise get
    FastAPI's default bodies. Everything else propagates out of the router
    and is caught by PipelineMiddleware, which renders it with the same
    handler instance.
    """

    async def handle(request: Request, exc: Exception):
        error_handler: GlobalErrorHandler = request.app.state.error_handler
        return error_handler.render(exc, getattr(request.state, "context", None))

    app.add_exception_handler(NatoursError, handle)
    app.add_exception_handler(RequestValidationError, handle)
    app.add_exception_handler(StarletteHTTPException, handle)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    rate_limit_store: Optional[RateLimitStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:          Configuration; defaults to the environment-loaded
                           singleton.
        rate_limit_store:  Shared rate-limit entry table; a fresh in-memory
                           store is created when omitted.
    """
    config = settings or default_settings

    app = FastAPI(
        title="Natours API",
        description="Tours, users and reviews behind a fixed request pipeline.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    error_handler = GlobalErrorHandler(verbosity=config.error_verbosity)
    tour_service = TourService()

    app.state.settings = config
    app.state.error_handler = error_handler
    app.state.tour_service = tour_service
    app.state.review_service = ReviewService(tour_service)

    # ── Request Pipeline ──────────────────────────────────────────────────
    app.add_middleware(
        PipelineMiddleware,
        pipeline=build_pipeline(config, rate_limit_store),
        error_handler=error_handler,
    )

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    for prefix, router in ROUTE_TABLE:
        app.include_router(router, prefix=prefix)

    # Must stay last: it matches every path
    app.include_router(fallback.router)

    return app


app = create_app()
