"""
Shared error handling for the Guestbook backend.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class GuestbookException(Exception):
    """Base exception for Guestbook services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(GuestbookException):
    """Client input rejected before any side effect."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class StoreError(GuestbookException):
    """Connectivity or query failure against the durable store."""

    status_code = 500

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)


class CacheError(GuestbookException):
    """Connectivity or command failure against the cache.

    Callers with a durable fallback catch this and degrade instead of failing.
    """

    status_code = 503

    def __init__(self, message: str = "Cache error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_ERROR", message, details)


class CacheCorruptionError(GuestbookException):
    """Cached content exists but cannot be decoded."""

    status_code = 500

    def __init__(self, key: str, message: str = "Cached value could not be decoded"):
        super().__init__("CACHE_CORRUPTED", message, {"key": key})
