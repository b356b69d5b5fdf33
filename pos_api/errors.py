"""Error types shared by the storage, service and HTTP layers."""
from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the process environment is misconfigured."""


class ServiceError(Exception):
    """Base class for failures that are reported to API callers."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateUserError(ServiceError):
    status_code = 400
    default_message = "A user with that email already exists"


class InvalidCredentialsError(ServiceError):
    """Login failure; identical for unknown emails and wrong passwords."""

    status_code = 400
    default_message = "Invalid email or password"

    def __init__(self) -> None:
        super().__init__(self.default_message)


class InvalidTokenError(ServiceError):
    status_code = 401
    default_message = "Invalid token"


class TokenExpiredError(InvalidTokenError):
    default_message = "Token expired"


class InternalError(ServiceError):
    """Unexpected failure; the message never carries internal detail."""

    status_code = 500

    def __init__(self) -> None:
        super().__init__(self.default_message)


__all__ = [
    "ConfigurationError",
    "DuplicateUserError",
    "InternalError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "ServiceError",
    "TokenExpiredError",
    "ValidationError",
]
