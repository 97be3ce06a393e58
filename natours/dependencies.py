"""
Natours Backend — Router Dependencies
=======================================

What:  FastAPI dependencies shared by the resource routers.
How:   get_context() hands routers the pipeline's RequestContext, which holds
       the decoded, sanitized and de-duplicated inputs. Path params are
       resolved by the router after the pipeline has run, so get_context()
       sanitizes them into ctx.params itself. Routers must read inputs from
       the context rather than from the raw Starlette request.

       get_current_user() is the boundary to the auth collaborator: it
       decodes the bearer token with PyJWT and stores the identity on the
       context. Token errors (expired, bad signature, garbage) are left to
       propagate as raw jwt exceptions; the global error handler knows how
       to classify them.
"""

import logging
import uuid
from typing import Any, Dict

import jwt
from fastapi import Depends, Request

from natours.exceptions import AuthenticationError, ServerFault, ValidationError
from natours.middleware.context import RequestContext
from natours.middleware.sanitize import sanitize
from natours.services.review_service import ReviewService
from natours.services.tour_service import TourService

logger = logging.getLogger(__name__)

# Every readable route answers HEAD as well
READ_METHODS = ["GET", "HEAD"]


def get_context(request: Request) -> RequestContext:
    ctx = getattr(request.state, "context", None)
    if ctx is None:
        raise ServerFault("Request context missing; is PipelineMiddleware installed?")
    # Path params only exist once routing has matched, after the pipeline ran
    if request.path_params and not ctx.params:
        ctx.params = sanitize(dict(request.path_params))
    return ctx


def parse_uuid(value: Any, field: str) -> uuid.UUID:
    """Parse an identifier taken from the context, or fail with a 400."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}.", field=field)


def get_tour_service(request: Request) -> TourService:
    return request.app.state.tour_service


def get_review_service(request: Request) -> ReviewService:
    return request.app.state.review_service


def get_current_user(
    request: Request,
    ctx: RequestContext = Depends(get_context),
) -> Dict[str, Any]:
    authorization = ctx.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError()

    settings = request.app.state.settings
    payload = jwt.decode(token.strip(), settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    if "id" not in payload:
        raise AuthenticationError("The token does not identify a user. Please log in again.")

    ctx.user = {
        "id": str(payload["id"]),
        "name": payload.get("name"),
        "email": payload.get("email"),
        "role": payload.get("role", "user"),
    }
    return ctx.user
