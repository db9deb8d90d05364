"""
Wayfinder API — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for every error the API can return.
Why:   Services raise domain errors without knowing about HTTP; global
       handlers registered in main.py turn them into the uniform envelope
       {code, message, details}.
How:   Each class fixes its machine-readable `code` and HTTP `status_code`;
       instances carry a human-readable message and a `context` dict that
       becomes the envelope's `details`.

Exception Hierarchy:
    WayfinderError (base)          → 500 server_error
    ├── ValidationError            → 400 invalid_request
    ├── NotFoundError              → 404 not_found
    ├── UnauthorizedError          → 401 unauthorized
    ├── RateLimitExceededError     → 429 rate_limited (+ Retry-After)
    ├── RoutingEngineError         → 502 graphhopper_error
    └── StorageError               → 500 server_error
"""

from typing import Any, Dict, Optional


class WayfinderError(Exception):
    """
    Base exception for all Wayfinder application errors.

    Attributes:
        message:  User-facing error description
        context:  Structured details returned as the envelope's `details`
    """

    code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context
        super().__init__(self.message)

    def to_envelope(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.context}


class ValidationError(WayfinderError):
    """
    Raised when client input fails validation.

    When:    Bad pagination, incomplete geo filter, malformed JSON body,
             missing/ill-typed route fields, unresolvable locations.
    HTTP:    400 Bad Request

    Example response:
        {
            "code": "invalid_request",
            "message": "Invalid limit. Must be 1..500.",
            "details": {"limit": 0}
        }
    """

    code = "invalid_request"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context) if context else None
        if field:
            ctx = ctx or {}
            ctx.setdefault("field", field)
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(WayfinderError):
    """
    Raised when a referenced resource id is absent.

    HTTP:    404 Not Found
    Details: {"id": <requested id>}
    """

    code = "not_found"
    status_code = 404

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        super().__init__(
            message=f"{resource} not found",
            context={"id": resource_id} if resource_id is not None else None,
        )
        self.resource = resource
        self.resource_id = resource_id


class UnauthorizedError(WayfinderError):
    """Missing or unknown API key. HTTP 401."""

    code = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Invalid API key."):
        super().__init__(message=message, context=None)


class RateLimitExceededError(WayfinderError):
    """
    Raised when a user exceeds their per-minute request budget.

    HTTP:    429 Too Many Requests
    Carries `retry_after` (seconds) for the Retry-After header.
    """

    code = "rate_limited"
    status_code = 429

    def __init__(
        self,
        retry_after: int,
        message: str = "Rate limit exceeded. Try later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.retry_after = retry_after


class RoutingEngineError(WayfinderError):
    """
    Raised when GraphHopper cannot produce a usable route.

    When:    Transport failure or timeout, non-2xx status, a body without
             paths[0], or a path lacking the requested geometry encoding.
    HTTP:    502 Bad Gateway

    The upstream status (0 when the request never completed) and the raw
    upstream payload are kept in `context` for diagnostics.
    """

    code = "graphhopper_error"
    status_code = 502

    def __init__(
        self,
        message: str = "GraphHopper returned an error.",
        upstream_status: int = 0,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.upstream_status = upstream_status


class StorageError(WayfinderError):
    """
    Raised when a collection cannot be written.

    Reads never raise (missing or malformed data reads as an empty
    collection); writes that fail at the OS level do.
    HTTP:    500 Internal Server Error
    """

    code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "Failed to persist data. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
