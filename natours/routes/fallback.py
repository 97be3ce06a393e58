"""
Natours Backend — Not-Found Fallback
======================================

What:  Catches every request no resource router matched.
How:   Registered after all routers, for every method and every path. It
       never answers itself: it raises NotFoundError and the global error
       handler writes the 404.
"""

from fastapi import APIRouter, Depends

from natours.dependencies import get_context
from natours.exceptions import NotFoundError
from natours.middleware.context import RequestContext

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter(include_in_schema=False)


@router.api_route("/{path:path}", methods=ALL_METHODS)
async def not_found(ctx: RequestContext = Depends(get_context)) -> None:
    raise NotFoundError(f"Can't find {ctx.original_url} on this server!")
