"""
Natours Backend — Request Context
===================================

What:  The mutable, request-scoped record every pipeline stage reads and
       rewrites in place.
How:   Built by PipelineMiddleware from the Starlette request, threaded through
       the stages, then attached to request.state.context so routers read
       the decoded, sanitized and de-duplicated inputs from it.
When:  Created when the request enters the pipeline; dropped once the
       response has been sent.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from starlette.requests import Request

QueryValue = Union[str, List[str]]


async def _empty_body() -> bytes:
    return b""


@dataclass
class RequestContext:
    path: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, QueryValue] = field(default_factory=dict)
    query_string: str = ""
    body: Any = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    annotations: Dict[str, Any] = field(default_factory=dict)
    client_id: str = "unknown"
    user: Optional[Any] = None
    read_body: Callable[[], Awaitable[bytes]] = _empty_body

    @property
    def original_url(self) -> str:
        """Path plus the query string as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";")[0].strip().lower()

    @property
    def request_time(self) -> Optional[str]:
        return self.annotations.get("request_time")

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        """
        Build a context from a Starlette request.

        Query keys sent once map to a string; keys sent more than once map
        to the list of their values in order. Collapsing those lists is the
        parameter deduplicator's job, not ours. Path params are left empty:
        routing has not matched yet (see natours.dependencies.get_context).
        """
        query: Dict[str, QueryValue] = {}
        for key, value in request.query_params.multi_items():
            if key not in query:
                query[key] = value
            elif isinstance(query[key], list):
                query[key].append(value)
            else:
                query[key] = [query[key], value]

        client_id = request.client.host if request.client else "unknown"

        return cls(
            path=request.url.path,
            method=request.method.upper(),
            headers={k.lower(): v for k, v in request.headers.items()},
            query=query,
            query_string=request.url.query,
            client_id=client_id or "unknown",
            read_body=request.body,
        )
