"""Custom exceptions for the job board API.

Each exception carries the HTTP status it maps to; the handlers registered in
app.main render them as ``{"error": {"message": ..., "issues": [...]}}``.
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base exception for errors that reach the client."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, issues: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.issues = issues
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"message": self.message}
        if self.issues:
            error["issues"] = self.issues
        return {"error": error}


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class ValidationAppError(BadRequestError):
    """Raised when request data fails validation outside of pydantic."""
    default_message = "Validation error"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class TokenError(Exception):
    """Raised when a bearer, activation or reset token cannot be trusted."""

    def __init__(self, message: str = "Invalid or expired token"):
        self.message = message
        super().__init__(message)


class EmailDeliveryError(Exception):
    """Raised when the mail transport rejects or cannot send a message."""
    pass
