"""
LabelDesk Backend: CORS Middleware
====================================

What:  Adds the CORS headers to every response and answers OPTIONS itself.
How:   Every request, with or without an Origin header, gets:

           Access-Control-Allow-Origin:  <allowed_origin>   (default "*")
           Access-Control-Allow-Methods: GET, POST, OPTIONS
           Access-Control-Allow-Headers: Content-Type

       Any OPTIONS request, on any path, is a preflight: 200 with an empty
       body, without reaching the router.

Starlette's CORSMiddleware only decorates requests that carry an Origin
header and answers preflights with a text body, so the annotation frontend's
contract ("headers on every response, empty 200 for OPTIONS") is implemented
here instead.
"""

from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

ALLOWED_METHODS = ("GET", "POST", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type",)


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Unconditional CORS headers with a single configured origin."""

    def __init__(self, app: ASGIApp, allowed_origin: str = "*"):
        super().__init__(app)
        self.headers: Dict[str, str] = {
            "Access-Control-Allow-Origin": allowed_origin,
            "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
            "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
        }

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)

        response = await call_next(request)
        response.headers.update(self.headers)
        return response
