"""
LabelDesk Backend: Middleware Package
=======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [CORS] → [Logging] → [Catch-all] → Route Handler

    1. Request ID: correlation ID in a ContextVar and the X-Request-ID header
    2. CORS: headers on every response; OPTIONS answered here with 200
    3. Logging: one access line per request with status and duration
    4. Catch-all: turns any exception no handler claimed into a JSON 500

    Responses travel back through the same chain in reverse, so the catch-all
    500 still gets logged, gets CORS headers and carries the request ID.
"""
