"""
Natours Backend — Development Request Logging Stage
=====================================================

What:  One log line per request: method, URL, status, duration, size.
How:   process() stamps a start time; on_response() computes the duration
       and logs once the final response is known, including short-circuited
       and error responses.
When:  Only registered when ENVIRONMENT=development.

Log line:
    GET /api/v1/tours?sort=price 200 3.214 ms - 1834
"""

import logging
import time

from starlette.responses import Response

from natours.middleware.base import Continue, Outcome, Stage
from natours.middleware.context import RequestContext

logger = logging.getLogger("natours.access")

_START_KEY = "log_start"


class RequestLoggingStage(Stage):
    """
    Logs each request with a level chosen from the response status.

        5xx     → ERROR
        4xx     → WARNING
        2xx/3xx → INFO
    """

    async def process(self, ctx: RequestContext) -> Outcome:
        ctx.annotations[_START_KEY] = time.perf_counter()
        return Continue(ctx)

    def on_response(self, ctx: RequestContext, response: Response) -> None:
        start = ctx.annotations.get(_START_KEY, time.perf_counter())
        duration_ms = (time.perf_counter() - start) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        content_length = response.headers.get("content-length", "-")

        logger.log(
            log_level,
            "%s %s %d %.3f ms - %s",
            ctx.method,
            ctx.original_url,
            status,
            duration_ms,
            content_length,
            extra={
                "method": ctx.method,
                "path": ctx.path,
                "status": status,
                "duration_ms": round(duration_ms, 3),
                "client_ip": ctx.client_id,
            },
        )
