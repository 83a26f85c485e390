"""
Standardized error handling utilities for SaveRaks API endpoints.
Every error leaves the API as {"error_code", "message", "details"?} with a matching HTTP status.
"""

import logging
from flask import jsonify
from typing import Dict, Any, Optional

# Standard error codes for consistent API responses
ERROR_CODES = {
    # Authentication errors
    "TOKEN_MISSING": "Authentication token is missing",
    "TOKEN_INVALID": "Authentication token is invalid or expired",
    "SESSION_EXPIRED": "Your session has ended, please log in again",
    "FORBIDDEN": "This action requires an administrator account",

    # Validation errors
    "INVALID_REQUEST": "Invalid request body or parameters",
    "VALIDATION_ERROR": "Request validation failed",
    "INVALID_UPLOAD": "The uploaded file could not be used",

    # Resource errors
    "NOT_FOUND": "Resource not found",
    "REWARD_NOT_FOUND": "Reward not found",
    "PIN_NOT_FOUND": "Map pin not found",
    "FEED_ITEM_NOT_FOUND": "Feed item not found",

    # Business logic errors
    "INSUFFICIENT_POINTS": "Not enough points to redeem this reward",
    "PIN_STATUS_INVALID": "A resolved pin cannot be reopened",
    "RATE_LIMITED": "Too many requests, please slow down",

    # System errors
    "SERVER_ERROR": "Internal server error",
    "CACHE_ERROR": "Cache operation failed",
    "AI_ANALYSIS_FAILED": "AI analysis failed, please try again with a clearer photo",
}

def create_error_response(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status_code: int = 500
) -> tuple:
    """
    Builds the JSON error body every endpoint returns.

    Args:
        error_code: Key into ERROR_CODES. Unknown codes are reported as SERVER_ERROR.
        message: Overrides the catalogue message when the caller has something more specific.
        details: Extra machine-readable context (balances, validation errors, limits).
        status_code: HTTP status; 5xx responses are logged as errors, the rest as warnings.

    Returns:
        (flask.Response, status_code)
    """
    if error_code not in ERROR_CODES:
        logging.warning(f"Unknown error code used: {error_code}")
        error_code = "SERVER_ERROR"

    error_message = message or ERROR_CODES[error_code]
    response_data = {"error_code": error_code, "message": error_message}
    if details:
        response_data["details"] = details

    log = logging.error if status_code >= 500 else logging.warning
    log(f"API Error [{error_code}]: {error_message} - Status: {status_code}")

    return jsonify(response_data), status_code

def handle_exception(e: Exception, context: str = "API endpoint") -> tuple:
    """Logs an unexpected exception with its traceback and answers with a generic 500."""
    error_type = type(e).__name__
    logging.error(f"Unexpected error in {context}: {error_type} - {e}", exc_info=True)

    return create_error_response(
        error_code="SERVER_ERROR",
        message="An unexpected error occurred",
        details={"error_type": error_type},
        status_code=500
    )

# Common error response shortcuts
def unauthorized_error(error_code: str = "TOKEN_INVALID") -> tuple:
    return create_error_response(error_code, status_code=401)

def forbidden_error(message: Optional[str] = None) -> tuple:
    return create_error_response("FORBIDDEN", message, status_code=403)

def not_found_error(error_code: str = "NOT_FOUND", message: Optional[str] = None) -> tuple:
    return create_error_response(error_code, message, status_code=404)

def validation_error(message: Optional[str] = None, details: Optional[Dict] = None) -> tuple:
    return create_error_response("VALIDATION_ERROR", message, details, status_code=400)

def bad_request_error(error_code: str = "INVALID_REQUEST", message: Optional[str] = None) -> tuple:
    return create_error_response(error_code, message, status_code=400)
