"""
Natours Backend — Pipeline Middleware
=======================================

What:  Mounts the stage pipeline on the FastAPI app as one Starlette
       middleware and assembles the stages in their fixed order.
How:   For each request:
         1. build a RequestContext from the Starlette request
         2. run the stages (natours.middleware.base.Pipeline)
         3. if every stage continued, attach the context to
            request.state.context and hand over to the FastAPI router
         4. anything raised by the router that FastAPI did not already turn
            into a response is rendered by the same GlobalErrorHandler

Stage Order:
    SecurityHeaders → [RequestLogging, development only] → RateLimit
    → JSONBody → Sanitize → ParameterPollution → StaticFiles → RequestTime
    → router dispatch
"""

import logging
from typing import List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from natours.config import Settings
from natours.error_handler import GlobalErrorHandler
from natours.middleware.base import Pipeline, Stage
from natours.middleware.body_parser import JSONBodyStage
from natours.middleware.context import RequestContext
from natours.middleware.logging import RequestLoggingStage
from natours.middleware.param_pollution import ParameterPollutionStage
from natours.middleware.rate_limit import InMemoryRateLimitStore, RateLimitStage, RateLimitStore
from natours.middleware.request_time import RequestTimeStage
from natours.middleware.sanitize import SanitizeStage
from natours.middleware.security_headers import SecurityHeadersStage
from natours.middleware.static_files import StaticFilesStage

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings, rate_limit_store: Optional[RateLimitStore] = None) -> Pipeline:
    """Assemble the global stages in registration order."""
    stages: List[Stage] = [SecurityHeadersStage()]

    if settings.is_development:
        stages.append(RequestLoggingStage())

    stages.extend(
        [
            RateLimitStage(
                store=rate_limit_store if rate_limit_store is not None else InMemoryRateLimitStore(),
                max_requests=settings.rate_limit_max,
                window_ms=settings.rate_limit_window_ms,
                scope_path=settings.rate_limit_scope,
                message=settings.rate_limit_message,
            ),
            JSONBodyStage(limit=settings.body_limit_bytes),
            SanitizeStage(),
            ParameterPollutionStage(whitelist=settings.param_whitelist_set),
            StaticFilesStage(directory=settings.public_dir),
            RequestTimeStage(),
        ]
    )

    logger.debug("Pipeline stages: %s", ", ".join(stage.name for stage in stages))
    return Pipeline(stages)


class PipelineMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, pipeline: Pipeline, error_handler: GlobalErrorHandler):
        super().__init__(app)
        self.pipeline = pipeline
        self.error_handler = error_handler

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ctx = RequestContext.from_request(request)

        async def endpoint(ctx: RequestContext) -> Response:
            request.state.context = ctx
            return await call_next(request)

        return await self.pipeline.run(ctx, endpoint, self.error_handler.render)
