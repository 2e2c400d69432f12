"""
Shared error handling for the Recipes API.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from .logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class RecipesApiException(Exception):
    """Base exception for Recipes API services."""

    status_code: int = 500

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


class ValidationError(RecipesApiException):
    """Malformed or missing input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class AuthenticationFailed(RecipesApiException):
    """Credentials did not match. Never says which half was wrong."""

    status_code = 401

    def __init__(self, message: str = "Invalid username or password", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_FAILED", message, details)


class InvalidToken(RecipesApiException):
    """Token signature did not verify or the token is malformed."""

    status_code = 401

    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_TOKEN", message, details)


class Unauthorized(RecipesApiException):
    """Request lacks a valid, unexpired token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized, invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHORIZED", message, details)


class RefreshNotEligible(RecipesApiException):
    """Token has already expired and can no longer be refreshed."""

    status_code = 401

    def __init__(self, message: str = "Token has expired", details: Optional[Dict[str, Any]] = None):
        super().__init__("REFRESH_NOT_ELIGIBLE", message, details)


class RefreshTooEarly(RecipesApiException):
    """Token still has more lifetime left than the refresh window."""

    status_code = 400

    def __init__(self, message: str = "Token is not expired yet", details: Optional[Dict[str, Any]] = None):
        super().__init__("REFRESH_TOO_EARLY", message, details)


class RecordNotFound(RecipesApiException):
    """No record with the requested identity."""

    status_code = 404

    def __init__(self, record_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("RECORD_NOT_FOUND", "Recipe not found", {"id": record_id, **(details or {})})
        self.record_id = record_id


class StoreUnavailable(RecipesApiException):
    """Durable store round-trip failed."""

    status_code = 502

    def __init__(self, operation: str, message: str = "Store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", f"{message} during {operation}", details)
        self.operation = operation


class CacheUnavailable(RecipesApiException):
    """Cache backend failed. Absorbed inside the catalog, never sent to clients."""

    status_code = 503

    def __init__(self, operation: str, message: str = "Cache unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_UNAVAILABLE", f"{message} during {operation}", details)
        self.operation = operation


class ConfigurationError(RecipesApiException):
    """Service cannot start with the supplied configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
