"""
Natours Backend — Structured Failure Hierarchy
================================================

What:  Defines the failure types that flow from any pipeline stage or router
       to the Global Error Handler.
How:   Each failure carries a message, an HTTP status code, an "operational"
       flag and an optional context dict. Failures are built once in
       __init__ and never mutated afterwards; the handler reads them, it does
       not decorate them.
Who:   Raised by pipeline stages and resource routers; consumed by
       natours.error_handler.GlobalErrorHandler.

Failure Hierarchy:
    NatoursError (base)
    ├── ClientFault                     → 4xx, always operational
    │   ├── ValidationError             → 400 Bad Request
    │   ├── MalformedPayloadError       → 400 Bad Request (body is not JSON)
    │   ├── AuthenticationError         → 401 Unauthorized
    │   ├── NotFoundError               → 404 Not Found
    │   ├── PayloadTooLargeError        → 413 Payload Too Large
    │   └── RateLimitExceededError      → 429 Too Many Requests
    └── ServerFault                     → 5xx, operational or not

Operational vs non-operational:
    Operational failures are expected and classifiable (bad input, not found,
    rate limited); their message is always safe to show the client.
    Non-operational failures are defects. In production their message is
    replaced by a generic one; in development it is shown with the trace.
"""

from typing import Any, Dict, Optional


class NatoursError(Exception):
    """
    Base class for every structured failure.

    Attributes:
        message:         User-facing description.
        status_code:     HTTP status code (4xx client fault, 5xx server fault).
        is_operational:  True for expected failures that are safe to expose.
        context:         Extra debug info (logged, shown only in development).
        headers:         Extra response headers (e.g. Retry-After).
    """

    default_status_code = 500

    def __init__(
        self,
        message: str = "Something went wrong",
        status_code: Optional[int] = None,
        is_operational: bool = True,
        context: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.status_code = status_code or self.default_status_code
        self.is_operational = is_operational
        self.context = context or {}
        self.headers = headers or {}
        super().__init__(self.message)

    @property
    def status(self) -> str:
        """Discriminator written to the response body: "fail" or "error"."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    @property
    def cause(self) -> Optional[BaseException]:
        return None


class ClientFault(NatoursError):
    """
    A failure caused by the request itself.

    Client faults are always operational: the client can read the message,
    fix the request and try again.
    """

    default_status_code = 400

    def __init__(
        self,
        message: str = "Bad request",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        status_code = status_code or self.default_status_code
        if not 400 <= status_code < 500:
            raise ValueError(f"ClientFault needs a 4xx status code, got {status_code}")
        super().__init__(
            message=message,
            status_code=status_code,
            is_operational=True,
            context=context,
            headers=headers,
        )


class ServerFault(NatoursError):
    """
    A failure on our side.

    Wraps the original exception as `cause` so the error handler can log its
    traceback and, in development, return it to the caller. Raw defects are
    normalized into ServerFault(operational=False) by the error handler.
    """

    default_status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        is_operational: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        status_code = status_code or self.default_status_code
        if not 500 <= status_code < 600:
            raise ValueError(f"ServerFault needs a 5xx status code, got {status_code}")
        super().__init__(
            message=message,
            status_code=status_code,
            is_operational=is_operational,
            context=context,
        )
        self._cause = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause


class ValidationError(ClientFault):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, status_code=400, context=ctx)
        self.field = field


class MalformedPayloadError(ClientFault):
    """Request body could not be decoded. HTTP: 400 Bad Request."""

    def __init__(
        self,
        message: str = "Request body is not valid JSON",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=400, context=context)


class AuthenticationError(ClientFault):
    """
    Raised by the auth collaborator when no usable credentials were sent.

    HTTP: 401 Unauthorized
    """

    def __init__(
        self,
        message: str = "You are not logged in! Please log in to get access.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, status_code=401, context=context)


class NotFoundError(ClientFault):
    """
    Raised when a path or a resource does not exist.

    HTTP: 404 Not Found

    Either pass a complete message (the fallback route does) or a resource
    name and id, in which case the message is derived from them.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"No {resource} found with ID '{resource_id}'"
            ctx["resource"] = resource
            if resource_id:
                ctx["resource_id"] = resource_id
        super().__init__(message=message, status_code=404, context=ctx)


class PayloadTooLargeError(ClientFault):
    """
    Raised when the request body exceeds the configured limit.

    HTTP: 413 Payload Too Large
    """

    def __init__(
        self,
        limit: int,
        received: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["limit"] = limit
        if received is not None:
            ctx["received"] = received
        super().__init__(
            message="Request entity too large",
            status_code=413,
            context=ctx,
        )
        self.limit = limit


class RateLimitExceededError(ClientFault):
    """
    Raised when a client exceeds its request quota for the current window.

    HTTP: 429 Too Many Requests

    The Retry-After header tells HTTP-compliant clients when the window resets.
    """

    def __init__(
        self,
        message: str,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(
            message=message,
            status_code=429,
            context=ctx,
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after
