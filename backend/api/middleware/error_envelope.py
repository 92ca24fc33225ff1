"""
Error envelope middleware.

Every error leaves the API in one shape:

    {"error": {"code": "INVALID_RANGE", "message": "...", "requestId": "...", "field": "endDate"}}

`field` and `details` appear only when known. Stack traces never reach the
client; unhandled exceptions are logged here with request and tenant ids.
"""

import logging
from typing import Any, Dict, List, Optional

from flask import Flask, g, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from services.time_window import InvalidRangeError

logger = logging.getLogger('api.middleware.error')

# code -> HTTP status
ERROR_CODES = {
    "BAD_REQUEST": 400,
    "INVALID_PARAMS": 400,
    "INVALID_RANGE": 400,
    "UNAUTHORIZED": 401,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "INTERNAL_ERROR": 500,
}


def make_error_response(
    code: str,
    message: str,
    status_code: Optional[int] = None,
    field: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
):
    """(response, status) carrying the standard envelope and X-Request-ID."""
    request_id = getattr(g, 'request_id', None)
    body: Dict[str, Any] = {"code": code, "message": message, "requestId": request_id}
    if field:
        body["field"] = field
    if details:
        body["details"] = details

    response = jsonify({"error": body})
    if request_id:
        response.headers['X-Request-ID'] = request_id
    return response, status_code or ERROR_CODES.get(code, 500)


def pydantic_error_details(error: PydanticValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to [{field, message}] using the wire (alias) names."""
    return [
        {
            'field': '.'.join(str(part) for part in (err.get('loc') or ())) or None,
            'message': err.get('msg'),
        }
        for err in error.errors()
    ]


def setup_error_handlers(app: Flask) -> None:
    """
    Register the envelope handlers.

    InvalidRangeError -> 400 INVALID_RANGE, pydantic ValidationError -> 400
    INVALID_PARAMS, werkzeug HTTP errors keep their status, anything else is
    a logged 500 INTERNAL_ERROR.
    """

    @app.errorhandler(InvalidRangeError)
    def handle_invalid_range(error):
        return make_error_response("INVALID_RANGE", str(error), field=error.field)

    @app.errorhandler(PydanticValidationError)
    def handle_invalid_params(error):
        details = pydantic_error_details(error)
        return make_error_response(
            "INVALID_PARAMS",
            "Invalid query parameters",
            field=details[0]['field'] if details else None,
            details={'errors': details},
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Method Not Allowed" -> "METHOD_NOT_ALLOWED"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        logger.exception(
            "unhandled_error type=%s request_id=%s tenant=%s",
            type(error).__name__,
            getattr(g, 'request_id', None),
            getattr(g, 'tenant_id', None),
        )
        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred")
