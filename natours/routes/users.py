"""GET /api/v1/users/me: the identity behind the bearer token."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from natours.dependencies import READ_METHODS, get_context, get_current_user
from natours.middleware.context import RequestContext
from natours.schemas.common import ErrorResponse, SuccessResponse

router = APIRouter(tags=["Users"])


@router.api_route(
    "/me",
    methods=READ_METHODS,
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    responses={401: {"model": ErrorResponse}},
    summary="Current user",
)
async def get_me(
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: RequestContext = Depends(get_context),
) -> Dict[str, Any]:
    return {
        "status": "success",
        "requested_at": ctx.request_time,
        "data": {"user": user},
    }
