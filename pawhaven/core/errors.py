# pawhaven/core/errors.py
import logging
from typing import Any, Dict, List, Optional

from flask import Flask
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from pawhaven.core.responses import failure
from pawhaven.repositories.base import DuplicateKeyError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP status."""
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None,
                 errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if code:
            self.code = code
        self.errors = errors


class BadRequest(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class Unauthenticated(ApiError):
    status_code = 401
    code = "AUTH_REQUIRED"
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Not allowed"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Email or username already in use"


def field_errors(messages: Any, prefix: str = "") -> List[Dict[str, Any]]:
    """Flatten marshmallow's nested error dict into [{field, message}, ...]."""
    flattened: List[Dict[str, Any]] = []
    if isinstance(messages, dict):
        for key, value in messages.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            if key == "_schema":
                name = prefix or "_schema"
            flattened.extend(field_errors(value, name))
    elif isinstance(messages, list):
        for item in messages:
            if isinstance(item, (dict, list)):
                flattened.extend(field_errors(item, prefix))
            else:
                flattened.append({"field": prefix, "message": str(item)})
    else:
        flattened.append({"field": prefix, "message": str(messages)})
    return flattened


def register_error_handlers(app: Flask) -> None:
    """Single error boundary: every failure leaves the app as the standard envelope."""

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        return failure(err.message, err.status_code, code=err.code, errors=err.errors)

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err: ValidationError):
        return failure("Validation failed", 400, code="VALIDATION_ERROR",
                       errors=field_errors(err.messages))

    @app.errorhandler(DuplicateKeyError)
    def handle_duplicate_key(err: DuplicateKeyError):
        # Never reveal which unique field collided.
        return failure(Conflict.default_message, 409, code=Conflict.code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = (err.name or "error").upper().replace(" ", "_")
        return failure(err.description or err.name, err.code or 500, code=code)

    @app.errorhandler(Exception)
    def handle_generic_exception(err: Exception):
        if app.config.get('ENV_NAME') == 'production':
            logger.error(f"Unhandled exception: {err.__class__.__name__}: {err}")
        else:
            logger.error(f"Unhandled exception: {err}", exc_info=True)
        return failure("Internal Server Error", 500, code="INTERNAL_SERVER_ERROR")
