"""
Error taxonomy for the portal.

Services raise these; the exception handlers registered in main.py turn them
into a JSON envelope of the form {"error": message} with the attached status.
"""

from typing import Any, Optional


class PortalError(Exception):
    """Base class for every error surfaced to API clients."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(PortalError):
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(PortalError):
    status_code = 401
    default_message = "Invalid or expired token"


# authorize() raises this name for missing, invalid and expired tokens
UnauthenticatedError = AuthenticationError


class InvalidCredentialsError(PortalError):
    status_code = 400
    default_message = "Invalid email or password"


class AccountSuspendedError(PortalError):
    status_code = 403
    default_message = "Your account has been suspended"


class ForbiddenError(PortalError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(PortalError):
    status_code = 404
    default_message = "Resource not found"


class DuplicateError(PortalError):
    status_code = 409
    default_message = "Resource already exists"


class DuplicateEmailError(DuplicateError):
    status_code = 400
    default_message = "Email already in use"


class DuplicateApplicationError(DuplicateError):
    default_message = "You have already applied to this internship"


class InvalidTransitionError(PortalError):
    status_code = 409
    default_message = "Invalid status transition"


class DependencyError(PortalError):
    status_code = 500
    default_message = "A backing service is unavailable"
