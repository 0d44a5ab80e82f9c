"""
LabelDesk Backend: Catch-all Error Middleware
===============================================

What:  Last line of defence for exceptions no exception handler claimed.
How:   Wraps the router. Anything that escapes it is logged with its stack
       trace and answered with a generic JSON 500. The response then flows
       back through the outer middleware, so it keeps its CORS headers and
       request ID (a 500 produced by Starlette's ServerErrorMiddleware would
       bypass them).
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from labeldesk.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """Converts unhandled exceptions into a 500 JSON response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            rid = request_id_var.get("")
            logger.error(
                "[%s] Unhandled error on %s %s: %s",
                rid,
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"error": GENERIC_ERROR_MESSAGE, "request_id": rid},
            )
