# budget_api/errors.py
"""
Domain errors raised by services and the auth guard.

Each error carries the HTTP status and the machine-readable code that
main.py renders as {"error": code, "message": message}.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    code = "INTERNAL"
    default_message = "Internal server error"

    def __init__(
        self, message: Optional[str] = None, *, details: Optional[Any] = None
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class InvalidToken(AppError):
    """Reset/verification token unknown, used or expired (400)."""

    status_code = 400
    code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class InvalidRefreshToken(InvalidToken):
    # bad signature, expiry and wrong type all collapse into this one
    status_code = 401
    default_message = "Invalid or expired refresh token"


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class TokenRevoked(AppError):
    status_code = 401
    code = "TOKEN_REVOKED"
    default_message = "Token has been revoked"


class InvalidCredentials(AppError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Forbidden"


class EmailNotVerified(Forbidden):
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Please verify your email address before logging in"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class EmailInUse(Conflict):
    code = "EMAIL_IN_USE"
    default_message = "Email already in use"


class EmailDeliveryError(Exception):
    """Raised by the email sender; callers log it and carry on."""


__all__ = [
    "AppError",
    "ValidationError",
    "InvalidToken",
    "InvalidRefreshToken",
    "Unauthorized",
    "TokenRevoked",
    "InvalidCredentials",
    "Forbidden",
    "EmailNotVerified",
    "NotFound",
    "Conflict",
    "EmailInUse",
    "EmailDeliveryError",
]
