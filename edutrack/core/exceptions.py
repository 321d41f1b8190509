"""Application error taxonomy.

Services raise these; the handlers registered in ``edutrack.main`` render
them into the standard error envelope.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Any] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation error"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Access denied. Insufficient permissions."


class NotFoundOrForbidden(AppError):
    """Resource is missing or the caller may not see it.

    The two cases are reported identically so existence is not leaked.
    """

    status_code = 404
    default_message = "Resource not found or access denied"


class ConflictError(AppError):
    status_code = 409
    default_message = "Duplicate field value"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
