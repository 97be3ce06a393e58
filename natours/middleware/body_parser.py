"""
Natours Backend — Body Decoding Stage
=======================================

What:  Reads the request payload, enforces the size cap and parses JSON into
       ctx.body.
How:   The declared Content-Length is checked before reading; the actual
       byte count is checked after. JSON bodies are parsed in strict mode:
       the top level must be an object or an array.

Outcomes:
    payload > limit            → 413 PayloadTooLargeError (any content type)
    invalid JSON / bare scalar → 400 MalformedPayloadError
    empty JSON body            → ctx.body = {}
    non-JSON content type      → ctx.body = {}
"""

import json
import logging

from natours.exceptions import MalformedPayloadError, PayloadTooLargeError
from natours.middleware.base import Continue, Fail, Outcome, Stage
from natours.middleware.context import RequestContext

logger = logging.getLogger(__name__)

DEFAULT_BODY_LIMIT = 10 * 1024


def is_json_content_type(content_type: str) -> bool:
    """application/json and the application/*+json family."""
    if content_type == "application/json":
        return True
    return content_type.startswith("application/") and content_type.endswith("+json")


class JSONBodyStage(Stage):
    def __init__(self, limit: int = DEFAULT_BODY_LIMIT):
        self.limit = limit

    async def process(self, ctx: RequestContext) -> Outcome:
        declared = ctx.headers.get("content-length")
        if declared is not None:
            try:
                declared_length = int(declared)
            except ValueError:
                return Fail(MalformedPayloadError("Invalid Content-Length header"))
            if declared_length > self.limit:
                return Fail(PayloadTooLargeError(limit=self.limit, received=declared_length))

        raw = await ctx.read_body()
        if len(raw) > self.limit:
            return Fail(PayloadTooLargeError(limit=self.limit, received=len(raw)))

        if not is_json_content_type(ctx.content_type):
            ctx.body = {}
            return Continue(ctx)

        if not raw.strip():
            ctx.body = {}
            return Continue(ctx)

        try:
            parsed = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            logger.debug("Rejected malformed JSON body on %s: %s", ctx.path, exc)
            return Fail(MalformedPayloadError(context={"reason": str(exc)}))

        if not isinstance(parsed, (dict, list)):
            return Fail(
                MalformedPayloadError("Request body must be a JSON object or array")
            )

        ctx.body = parsed
        return Continue(ctx)
