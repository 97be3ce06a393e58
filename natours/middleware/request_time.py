"""Stamps the request's arrival time, e.g. "2024-01-15T12:00:00.000Z"."""

from datetime import datetime, timezone
from typing import Callable

from natours.middleware.base import Continue, Outcome, Stage
from natours.middleware.context import RequestContext


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_string(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class RequestTimeStage(Stage):
    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        self._clock = clock

    async def process(self, ctx: RequestContext) -> Outcome:
        ctx.annotations["request_time"] = to_iso_string(self._clock())
        return Continue(ctx)
