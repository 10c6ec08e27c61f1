"""
Standardized API Response Module

Error bodies returned by the catalog routes share one envelope:

    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable message",
            "details": {...}  # Optional extra context
        },
        "status": "error"
    }

ERROR CODES:
    - SHOP_NOT_FOUND: Tenant slug does not resolve to a shop
    - NOT_FOUND: Category or item not found for this shop
    - VALIDATION_ERROR: Query parameters failed validation
    - ALREADY_EXISTS: A write collides with an existing row
    - CATALOG_UNAVAILABLE: The backing store could not serve the request
"""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error information."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorCodes:
    """Standard error codes for API responses."""

    # Not found errors (404)
    NOT_FOUND = "NOT_FOUND"
    SHOP_NOT_FOUND = "SHOP_NOT_FOUND"

    # Validation errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Conflict errors (409)
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Server errors (5xx)
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"


def error_response(
    code: str,
    message: str,
    details: Optional[dict] = None,
) -> dict:
    """
    Create a standardized error response dict.

    Empty details are omitted from the body.
    """
    error = ErrorDetail(code=code, message=message, details=details or None)
    return {
        "error": error.model_dump(exclude_none=True),
        "status": "error",
    }
