"""
Service Errors
Every failure the API reports carries an HTTP status and a stable code.
Rendered as {"success": false, "error", "code", "message"} by main.py.
"""

from typing import Any, Dict, Optional


class TripDeskError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    error: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Any = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.message = message or self.error
        self.details = details
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "success": False,
            "error": self.error,
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class UnparseableCommandError(TripDeskError):
    status_code = 400
    code = "COMMAND_NOT_UNDERSTOOD"
    error = "Could not parse command"


class UnsafeQueryError(TripDeskError):
    status_code = 400
    code = "UNSAFE_QUERY"
    error = "Unsafe query detected"

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or "The query contains potentially dangerous patterns and was blocked for security.",
            **kwargs
        )


class InvalidEditError(TripDeskError):
    status_code = 400
    code = "INVALID_EDIT"
    error = "Invalid edit"


class InvalidListingError(TripDeskError):
    status_code = 400
    code = "INVALID_LISTING"
    error = "Invalid listing"


class ListingNotFoundError(TripDeskError):
    status_code = 404
    code = "LISTING_NOT_FOUND"
    error = "Item not found"


class EditNotFoundError(TripDeskError):
    status_code = 404
    code = "EDIT_NOT_FOUND"
    error = "Edit not found"


class EditConflictError(TripDeskError):
    status_code = 409
    code = "EDIT_CONFLICT"
    error = "Edit conflict"


class EditActionNotSupportedError(TripDeskError):
    status_code = 501
    code = "NOT_IMPLEMENTED"
    error = "Action not supported"


class RateLimitExceededError(TripDeskError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    error = "Rate limit exceeded"

    def __init__(
        self,
        retry_after: int,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(
            message or f"Too many requests, retry in {retry_after}s",
            details={"retryAfter": retry_after},
            headers={**(headers or {}), "Retry-After": str(retry_after)}
        )
        self.retry_after = retry_after


class StoreError(TripDeskError):
    status_code = 503
    code = "STORE_UNAVAILABLE"
    error = "Storage unavailable"
