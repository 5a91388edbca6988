"""
Application Error Taxonomy

Every failure that can reach a client is one of these classes. The
exception handlers in ``feastflow.main`` turn them into the standard
``{"success": false, "message": ...}`` envelope with the class status code.
"""

from typing import Optional


class FeastFlowError(Exception):
    """Base class for errors converted into a JSON envelope."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(FeastFlowError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "Missing required fields"


class DuplicateEmailError(FeastFlowError):
    status_code = 400
    default_message = "User already exists with this email"


class InvalidCredentialsError(FeastFlowError):
    """
    Login failure.

    The message is fixed so an unknown email and a wrong password
    produce identical payloads.
    """
    status_code = 401
    default_message = "Invalid credentials"

    def __init__(self):
        super().__init__(self.default_message)


class UnauthenticatedError(FeastFlowError):
    status_code = 401
    default_message = "Not authorized to access this route"


class InvalidTokenError(UnauthenticatedError):
    default_message = "Invalid or expired token"


class ForbiddenError(FeastFlowError):
    status_code = 403
    default_message = "Not authorized to access this route"

    @classmethod
    def for_role(cls, role: str) -> "ForbiddenError":
        return cls(f"User role '{role}' is not authorized to access this route")


class NotFoundError(FeastFlowError):
    status_code = 404
    default_message = "Resource not found"


class StorageError(FeastFlowError):
    """Wraps a data-store failure; the original error is only logged."""
    status_code = 500
    default_message = "Server error"
