"""
Natours Backend — Review Routes
=================================

What:  GET /api/v1/reviews (optionally ?tour=<id>) and POST /api/v1/reviews.
How:   Creating a review requires a bearer token; the author is taken from
       the token, never from the body.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from natours.dependencies import (
    READ_METHODS,
    get_context,
    get_current_user,
    get_review_service,
    parse_uuid,
)
from natours.middleware.context import RequestContext
from natours.schemas.common import ErrorResponse, SuccessResponse
from natours.schemas.review import ReviewCreate
from natours.services.review_service import ReviewService

router = APIRouter(tags=["Reviews"])


@router.api_route(
    "",
    methods=READ_METHODS,
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="List reviews",
)
async def list_reviews(
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewService = Depends(get_review_service),
) -> Dict[str, Any]:
    raw_tour = ctx.query.get("tour")
    tour_id = parse_uuid(raw_tour, "tour") if raw_tour else None

    result = reviews.list_reviews(tour_id)
    return {
        "status": "success",
        "requested_at": ctx.request_time,
        "results": len(result),
        "data": {"reviews": result},
    }


@router.post(
    "",
    status_code=201,
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Review a tour",
)
async def create_review(
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: RequestContext = Depends(get_context),
    reviews: ReviewService = Depends(get_review_service),
) -> Dict[str, Any]:
    data = ReviewCreate.model_validate(ctx.body)
    return {
        "status": "success",
        "requested_at": ctx.request_time,
        "data": {"review": reviews.create_review(data, user_id=user["id"])},
    }
