"""
Natours Backend — Security Headers Stage
==========================================

What:  Sets protective HTTP response headers on every response.
How:   First stage of the pipeline. It never fails and never short-circuits;
       its on_response hook runs last, so the headers land on handler
       responses, static files and error responses alike.

Headers:
    X-DNS-Prefetch-Control      off
    X-Frame-Options             SAMEORIGIN (no embedding by other origins)
    Strict-Transport-Security   HTTPS only for 180 days, subdomains included
    X-Download-Options          noopen (old IE executes downloads in-site)
    X-Content-Type-Options      nosniff (browsers must trust Content-Type)
    X-XSS-Protection            1; mode=block
"""

from typing import Dict, Mapping, Optional

from starlette.responses import Response

from natours.middleware.base import Stage
from natours.middleware.context import RequestContext

DEFAULT_SECURITY_HEADERS: Mapping[str, str] = {
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Download-Options": "noopen",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
}

# Headers that advertise the server stack
REMOVED_HEADERS = ("X-Powered-By",)


class SecurityHeadersStage(Stage):
    def __init__(self, headers: Optional[Mapping[str, str]] = None):
        self._headers: Dict[str, str] = dict(headers or DEFAULT_SECURITY_HEADERS)

    def on_response(self, ctx: RequestContext, response: Response) -> None:
        for name in REMOVED_HEADERS:
            if name in response.headers:
                del response.headers[name]
        for name, value in self._headers.items():
            response.headers[name] = value
