"""
Application error hierarchy and Flask error handlers.

AppError is the base for all typed errors. The registered handler converts
AppError subclasses to the JSON shape the API uses everywhere:
{"success": false, "message": ..., "code": ...}.
"""
from typing import Any, Optional

from flask import Flask, jsonify


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"success": False, "message": self.message, "code": self.error_code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class CityNotFoundError(NotFoundError):
    error_code = "city_not_found"

    def __init__(self, identifier) -> None:
        super().__init__("City not found")
        self.identifier = identifier


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class DeliveryFailed(AppError):
    """OTP email could not be delivered and fallback mode is off."""
    status_code = 503
    error_code = "delivery_failed"


class RateLimited(AppError):
    """Too many OTP requests for one email."""
    status_code = 429
    error_code = "rate_limited"


def register_error_handlers(app: Flask) -> None:
    """Register the AppError handler on the Flask app."""

    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        return jsonify(exc.to_dict()), exc.status_code