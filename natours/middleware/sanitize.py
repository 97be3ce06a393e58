"""
Natours Backend — Input Sanitization Stage
============================================

What:  Neutralizes query-operator injection and markup injection in every
       request input: query parameters, decoded body and path params.
How:   Walks nested dicts and lists and applies two rules:

       1. Operator keys: a mapping key that starts with "$" or contains "."
          is dropped with its whole value. {"email": {"$gt": ""}} becomes
          {"email": {}}, so the value can no longer act as a query operator.
       2. Markup: every "<" in a string (keys included) becomes "&lt;",
          so "<script>" reaches handlers as "&lt;script>".

       Both rules only remove or replace characters that they never
       produce, which makes sanitize(sanitize(x)) == sanitize(x).

When:  After the body decoder, so parsed body fields are covered.
"""

import logging
from typing import Any

from natours.middleware.base import Continue, Outcome, Stage
from natours.middleware.context import RequestContext

logger = logging.getLogger(__name__)

OPERATOR_PREFIX = "$"
PATH_SEPARATOR = "."


def is_operator_key(key: Any) -> bool:
    return isinstance(key, str) and (
        key.startswith(OPERATOR_PREFIX) or PATH_SEPARATOR in key
    )


def escape_markup(text: str) -> str:
    return text.replace("<", "&lt;")


def sanitize(value: Any) -> Any:
    """Return a sanitized copy of `value`. Non-string scalars pass through."""
    if isinstance(value, str):
        return escape_markup(value)
    if isinstance(value, dict):
        cleaned = {}
        for key, item in value.items():
            if is_operator_key(key):
                continue
            new_key = escape_markup(key) if isinstance(key, str) else key
            cleaned[new_key] = sanitize(item)
        return cleaned
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    return value


class SanitizeStage(Stage):
    async def process(self, ctx: RequestContext) -> Outcome:
        before = (ctx.query, ctx.body, ctx.params)

        ctx.query = sanitize(ctx.query)
        ctx.body = sanitize(ctx.body)
        ctx.params = sanitize(ctx.params)

        if (ctx.query, ctx.body, ctx.params) != before:
            logger.info(
                "Sanitized request input on %s %s from %s",
                ctx.method,
                ctx.path,
                ctx.client_id,
            )
        return Continue(ctx)
