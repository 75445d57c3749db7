# api/utils/errors.py
"""
Standardized API error responses.

This module provides consistent error formatting across all API endpoints.
All errors follow the format: {"error": "error_code", "detail": "optional message"}

Error codes should be:
- snake_case
- descriptive but concise
- machine-parseable (no spaces or special chars)
"""

from flask import jsonify
from typing import Optional

from services.references import ReferenceErrorKind, ReferenceLookupError


# -----------------------------------------------------------------------------
# Standard HTTP Error Responses
# -----------------------------------------------------------------------------

def error_response(
    code: str,
    status: int = 400,
    detail: Optional[str] = None,
    **extra
):
    """
    Create a standardized error response.

    Args:
        code: Machine-readable error code (snake_case)
        status: HTTP status code
        detail: Human-readable explanation (optional)
        **extra: Additional fields to include in response

    Returns:
        Tuple of (jsonify response, status code)
    """
    payload = {"error": code}
    if detail:
        payload["detail"] = detail
    payload.update(extra)
    return jsonify(payload), status


# Not Found (404)
def not_found(resource: str = "resource", detail: str = None, **extra):
    """Requested resource does not exist."""
    return error_response("not_found", 404, detail or f"{resource} not found", **extra)


# Validation (400)
def validation_error(code: str, detail: str = None, **extra):
    """Request validation failed."""
    return error_response(code, 400, detail, **extra)


def missing_field(field: str):
    """Required field is missing."""
    return error_response(f"{field}_required", 400, f"Missing required field: {field}")


# Unavailable (503)
def service_unavailable(code: str = "storage_unavailable", detail: str = None):
    """A backing store could not be reached."""
    return error_response(code, 503, detail)


# Server Error (500)
def internal_error(code: str, detail: str = None):
    """Unexpected failure while handling the request."""
    return error_response(code, 500, detail)


# -----------------------------------------------------------------------------
# Domain-Specific Errors
# -----------------------------------------------------------------------------

def reference_error(error: ReferenceLookupError):
    """
    Map a failed scripture lookup to a response.

    Unknown books, malformed citations and out-of-range verses are client
    errors (400); unknown ids and references with no stored text are 404.
    """
    kind = error.kind
    if kind in (ReferenceErrorKind.NOT_FOUND, ReferenceErrorKind.EMPTY_RESULT):
        return not_found("reference", str(error), kind=kind.value, ref=error.text)
    return validation_error("invalid_reference", str(error), kind=kind.value, ref=error.text)
