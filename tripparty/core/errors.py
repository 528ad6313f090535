# tripparty/core/errors.py
"""
Failure categories raised by the service layer.

Each error carries a category name and the HTTP status the routers answer
with; services never raise HTTPException themselves.
"""


class AppError(Exception):
    """Base class for every failure reported to the caller."""

    category = "Internal"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.category


class Unauthorized(AppError):
    """Missing, malformed or expired bearer token."""

    category = "Unauthorized"
    status_code = 401


class Forbidden(AppError):
    """Authenticated but not allowed (non-owner update, owner leaving...)."""

    category = "Forbidden"
    status_code = 403


class NotFound(AppError):
    category = "NotFound"
    status_code = 404


class ValidationFailed(AppError):
    """Malformed or out-of-range input."""

    category = "ValidationError"
    status_code = 400


class Conflict(AppError):
    """Duplicate membership, duplicate username or destination name."""

    category = "Conflict"
    status_code = 409


class InvalidState(AppError):
    """Operation not allowed for the current party status or membership."""

    category = "InvalidState"
    status_code = 400


class AdvisorTimeout(AppError):
    """The language model did not answer within the deadline. Retryable."""

    category = "Timeout"
    status_code = 504


class RateLimited(AppError):
    category = "RateLimited"
    status_code = 429


class AdvisorUnavailable(AppError):
    category = "ServiceError"
    status_code = 503


class InternalError(AppError):
    category = "Internal"
    status_code = 500
