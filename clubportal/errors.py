"""Custom exception classes for the application."""

from __future__ import annotations

import enum


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class InvalidCredentialsError(AppError):
    """Raised when the identity provider refuses an email/password pair."""

    def __init__(self, message="Invalid email or password."):
        """Initialize the error."""
        super().__init__(message, 401)


class PendingApprovalError(AppError):
    """Raised when an account without any role tries to sign in."""

    def __init__(self, message):
        """Initialize the error."""
        super().__init__(message, 403)


class AccessDenied(AppError):
    """Raised when the caller may not touch the requested resource."""

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class LastAdminError(AppError):
    """Raised when a role change would leave the club without an admin."""

    def __init__(self, message="The last admin cannot be removed or demoted."):
        """Initialize the error."""
        super().__init__(message, 409)


class TeamFullError(AppError):
    """Raised when a competition robot has no free slot left."""

    def __init__(self, message="This robot team is full."):
        """Initialize the error."""
        super().__init__(message, 409)


class SchemaError(AppError):
    """Raised when a stored document does not have the expected shape."""

    def __init__(self, message="Stored data has an unexpected shape."):
        """Initialize the error."""
        super().__init__(message, 502)


class ErrorKind(enum.Enum):
    """Classification of remote data store failures."""

    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INVALID = "invalid"
    UNKNOWN = "unknown"


_KIND_STATUS = {
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.INVALID: 400,
    ErrorKind.UNKNOWN: 500,
}


class StoreError(AppError):
    """Raised when a call to the remote data store fails."""

    def __init__(self, action, kind=ErrorKind.UNKNOWN, detail=None):
        """Initialize the error."""
        super().__init__(f"Failed to {action}.", _KIND_STATUS[kind])
        self.action = action
        self.kind = kind
        self.detail = detail

    @property
    def is_permission_denied(self):
        """Whether a row-level security rule refused the call."""
        return self.kind is ErrorKind.PERMISSION_DENIED


class TransitionIncompleteError(AppError):
    """Raised when a multi-step transition stopped after a partial write."""

    def __init__(self, transition, completed_steps, failed_step):
        """Initialize the error."""
        done = ", ".join(completed_steps) or "nothing"
        super().__init__(
            f"{transition} stopped at '{failed_step}' after: {done}. "
            "Please retry the action.",
            500,
        )
        self.transition = transition
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
