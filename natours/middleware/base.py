"""
Natours Backend — Pipeline Stages and Driver
==============================================

What:  The stage protocol and the fixed driver loop that runs an ordered
       list of stages over a RequestContext.
How:   Every stage returns an explicit Outcome instead of calling a hidden
       "next" continuation:

           Continue(ctx)           → run the next stage
           ShortCircuit(response)  → stop, this response is final
           Fail(failure)           → stop, hand the failure to the error handler

       When every stage continues, the driver calls the endpoint (the router
       dispatcher). Afterwards each stage that ran gets on_response(), in
       reverse order, so the first stage sees the final response last.

Request Flow:
    ctx ─▶ [Headers] ─▶ [Dev Log] ─▶ [Rate Limit] ─▶ ... ─▶ [Request Time] ─▶ endpoint
              │             │              │                        │
              ◀── on_response ◀──────────── on_response ◀──────────── response

Ordering guarantee:
    A stage that fails (by returning Fail or by raising) prevents every later
    stage and the endpoint from running. Only the error handler runs next.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Sequence, Union

from starlette.responses import Response

from natours.middleware.context import RequestContext

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Outcomes
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Continue:
    context: RequestContext


@dataclass(frozen=True)
class ShortCircuit:
    response: Response


@dataclass(frozen=True)
class Fail:
    failure: BaseException


Outcome = Union[Continue, ShortCircuit, Fail]

Endpoint = Callable[[RequestContext], Awaitable[Response]]
FailureRenderer = Callable[[BaseException, RequestContext], Response]


# ══════════════════════════════════════════════════════════════════════════
# Stage Protocol
# ══════════════════════════════════════════════════════════════════════════

class Stage:
    """
    One step of the request pipeline.

    Subclasses override process(); on_response() is optional and is only
    called if process() ran for this request.
    """

    async def process(self, ctx: RequestContext) -> Outcome:
        return Continue(ctx)

    def on_response(self, ctx: RequestContext, response: Response) -> None:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


# ══════════════════════════════════════════════════════════════════════════
# Driver
# ══════════════════════════════════════════════════════════════════════════

class Pipeline:
    """
    Runs stages in registration order over one RequestContext.

    The stage tuple is fixed at construction; the same Pipeline instance
    serves every request.
    """

    def __init__(self, stages: Sequence[Stage]):
        self._stages = tuple(stages)

    @property
    def stages(self) -> Sequence[Stage]:
        return self._stages

    async def run(
        self,
        ctx: RequestContext,
        endpoint: Endpoint,
        render_failure: FailureRenderer,
    ) -> Response:
        executed: List[Stage] = []
        response = None

        for stage in self._stages:
            executed.append(stage)
            try:
                outcome = await stage.process(ctx)
            except Exception as exc:
                outcome = Fail(exc)

            if isinstance(outcome, Continue):
                ctx = outcome.context
                continue
            if isinstance(outcome, ShortCircuit):
                logger.debug("%s short-circuited %s %s", stage.name, ctx.method, ctx.path)
                response = outcome.response
            else:
                logger.debug("%s failed %s %s", stage.name, ctx.method, ctx.path)
                response = render_failure(outcome.failure, ctx)
            break
        else:
            try:
                response = await endpoint(ctx)
            except Exception as exc:
                response = render_failure(exc, ctx)

        for stage in reversed(executed):
            stage.on_response(ctx, response)
        return response
