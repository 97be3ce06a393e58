"""
Natours Backend — Tour Routes
===============================

What:  GET /api/v1/tours, GET /api/v1/tours/{tour_id}, POST /api/v1/tours.
How:   Inputs come from the pipeline's RequestContext (already sanitized and
       de-duplicated). Failures are raised, never turned into responses
       here: a missing tour raises NotFoundError, an invalid body lets
       pydantic's ValidationError propagate, a malformed id is rejected by
       parse_uuid() with the sanitized id in the message. The global error
       handler shapes all three.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from natours.dependencies import READ_METHODS, get_context, get_tour_service, parse_uuid
from natours.middleware.context import RequestContext
from natours.schemas.common import ErrorResponse, SuccessResponse
from natours.schemas.tour import TourCreate
from natours.services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tours"])


@router.api_route(
    "",
    methods=READ_METHODS,
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    summary="List tours",
    description=(
        "Filter on duration, ratingsAverage, ratingsQuantity, maxGroupSize, difficulty "
        "and price; repeat a filter to match any of its values. Sort with "
        "?sort=price,-ratingsAverage."
    ),
)
async def list_tours(
    ctx: RequestContext = Depends(get_context),
    tours: TourService = Depends(get_tour_service),
) -> Dict[str, Any]:
    sort = ctx.query.get("sort")
    if isinstance(sort, list):
        sort = sort[0] if sort else None

    result = tours.list_tours(ctx.query, sort=sort)
    return {
        "status": "success",
        "requested_at": ctx.request_time,
        "results": len(result),
        "data": {"tours": result},
    }


@router.api_route(
    "/{tour_id}",
    methods=READ_METHODS,
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get a single tour",
)
async def get_tour(
    ctx: RequestContext = Depends(get_context),
    tours: TourService = Depends(get_tour_service),
) -> Dict[str, Any]:
    tour_id = parse_uuid(ctx.params["tour_id"], "tour_id")
    return {
        "status": "success",
        "requested_at": ctx.request_time,
        "data": {"tour": tours.get_tour(tour_id)},
    }


@router.post(
    "",
    status_code=201,
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Create a tour",
)
async def create_tour(
    ctx: RequestContext = Depends(get_context),
    tours: TourService = Depends(get_tour_service),
) -> Dict[str, Any]:
    data = TourCreate.model_validate(ctx.body)
    return {
        "status": "success",
        "requested_at": ctx.request_time,
        "data": {"tour": tours.create_tour(data)},
    }
