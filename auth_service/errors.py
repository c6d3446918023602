"""Error taxonomy shared by the domain, security and API layers.

These exceptions never import FastAPI. Each class carries the HTTP status the
responder in :mod:`auth_service.api.errors` renders it with.
"""

from __future__ import annotations


class AuthServiceError(Exception):
    """Base class for all classified service failures."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(AuthServiceError):
    """Raised when a unique constraint such as the account email is violated."""

    status_code = 409
    default_message = "Resource already exists"


class UnauthenticatedError(AuthServiceError):
    """Raised for bad credentials and missing, invalid or expired tokens."""

    status_code = 401
    default_message = "Authentication failed"


class TokenExpiredError(UnauthenticatedError):
    default_message = "Token has expired"


class TokenInvalidError(UnauthenticatedError):
    default_message = "Invalid token"


class NotFoundError(AuthServiceError):
    """Raised when an operation references an account that does not exist."""

    status_code = 404
    default_message = "Resource not found"


class ValidationFailure(AuthServiceError):
    """Raised when input is malformed."""

    status_code = 400
    default_message = "Validation failed"


class RecordValidationError(ValidationFailure):
    """Raised by the store when a record fails field validation before a write."""

    status_code = 409

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__(", ".join(self.problems))
