"""
LabelDesk Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for each failure the API can report.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers (registered in main.py) turn them into JSON
       error responses with the right HTTP status code.
Who:   Raised by the database handle, the store and the label service.

Exception Hierarchy:
    LabelDeskError (base)
    ├── ValidationError           → 400 Bad Request (client can fix)
    ├── OwnershipConflictError    → 403 Forbidden (record signed by someone else)
    ├── StorageUnavailableError   → 500 Internal Server Error
    └── StartupError              → fatal, raised during application startup

The `context` dict is for server logs only. Handlers never copy it into a
response body.
"""

from typing import Any, Dict, List, Optional


class LabelDeskError(Exception):
    """
    Base exception for all LabelDesk application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(LabelDeskError):
    """
    Raised when a write request is missing its required fields.

    HTTP: 400 Bad Request. No write is performed.

    Example response:
        {"error": "imageIndex and modifiedBy are required", "request_id": "1a2b3c4d"}
    """

    def __init__(
        self,
        message: str = "imageIndex and modifiedBy are required",
        missing: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if missing:
            ctx["missing"] = list(missing)
        super().__init__(message=message, context=ctx)
        self.missing = list(missing or [])


class OwnershipConflictError(LabelDeskError):
    """
    Raised when an imageIndex is already labeled under a different modifiedBy.

    HTTP: 403 Forbidden. The stored record is left untouched.

    The owner check compares free-text names supplied by the client. It keeps
    annotators from overwriting each other by accident; it does not
    authenticate anyone.
    """

    def __init__(
        self,
        image_index: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if image_index is not None:
            ctx["image_index"] = image_index
        super().__init__(
            message="This imageIndex is already labeled by another user",
            context=ctx,
        )
        self.image_index = image_index


class StorageUnavailableError(LabelDeskError):
    """
    Raised when the database cannot be reached or a write cannot be committed.

    HTTP: 500 Internal Server Error. The message is generic; the driver error
    is kept in `context` and in the exception chain for the server log.
    """

    def __init__(
        self,
        message: str = "Storage is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StartupError(LabelDeskError):
    """
    Raised from the application lifespan when the store cannot be prepared.

    Propagating it out of startup makes the ASGI server abort, so the process
    exits without serving any request.
    """

    def __init__(
        self,
        message: str = "Could not connect to the label database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
