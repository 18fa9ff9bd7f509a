"""
Stockroom — Custom Exception Hierarchy
========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, and let the startup guard
       distinguish transient store failures from fatal ones.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch the request-level
       ones and return structured JSON error responses.
Who:   Raised by services, the readiness guard, and routes.

Exception Hierarchy:
    StockroomError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── EventPublishError        → 400 Bad Request (event did not fit the batch)
    ├── UpstreamServiceError     → 502 Bad Gateway (user directory failed)
    ├── DatabaseError            → 500 Internal Server Error
    ├── StoreUnavailableError    → startup only: retryable, store not reachable yet
    └── ReadinessExhaustedError  → startup only: fatal, guard ran out of attempts

    Startup errors never reach an HTTP handler: they propagate out of the
    application lifespan and stop the process before it listens.
"""

from typing import Any, Dict, Optional


class StockroomError(Exception):
    """
    Base exception for all Stockroom application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client
                  unless the handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StockroomError):
    """
    Raised when client input fails validation.

    When:    Blank item name, malformed form fields.
    HTTP:    400 Bad Request

    FastAPI's own schema validation still answers 422 for structurally
    invalid JSON bodies; this exception covers the required-field rules that
    run before the store is touched.
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
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(StockroomError):
    """
    Raised when a requested resource does not exist.

    When:    GET /users/{id} for a user the directory does not know.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class EventPublishError(StockroomError):
    """
    Raised when an order event cannot be added to an Event Hubs batch.

    HTTP:    400 Bad Request. The payload is too large for a batch, which the
             client can fix by sending a smaller order.
    """

    def __init__(
        self,
        message: str = "Failed to add event to batch.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(StockroomError):
    """
    Raised when the external user directory fails after all retries
    or answers with an unexpected status.

    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        message: str = "The user directory is unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StockroomError):
    """
    Raised when database operations fail unexpectedly during a request.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Details
        (SQL, constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailableError(StockroomError):
    """
    The store could not be reached during a readiness attempt.

    Raised by the startup guard around a failure classified as retryable;
    it is what the guard's retry policy retries on. Carries the structured
    classification in `failure`.
    """

    def __init__(self, failure: Any, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["code"] = getattr(failure, "code", None)
        super().__init__(
            message=f"Database connection failed: {getattr(failure, 'message', failure)}",
            context=ctx,
        )
        self.failure = failure


class ReadinessExhaustedError(StockroomError):
    """
    Every readiness attempt failed with a retryable error.

    Fatal: the process must not start serving against a store that never
    became reachable.
    """

    def __init__(self, attempts: int, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["attempts"] = attempts
        super().__init__(
            message=(
                f"Database did not become ready after {attempts} attempt(s). "
                "Aborting startup."
            ),
            context=ctx,
        )
        self.attempts = attempts
