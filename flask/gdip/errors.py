"""
Error taxonomy shared by every service.

Services raise these; the handlers registered in create_app() turn them into a
single JSON body of the form {"error": "<message>"}.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ApiError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class AuthError(ApiError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(AuthError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


class RateLimitedError(ApiError):
    status_code = 429
    default_message = "Too many attempts. Try again later."


class UpstreamError(ApiError):
    status_code = 502
    default_message = "eBay search failed"


__all__ = [
    "ApiError",
    "ValidationError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "UpstreamError",
]
