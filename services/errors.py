# services/errors.py
"""
Domain errors raised by the auth services.

Every expected failure is an ``AuthError``; the HTTP layer renders them all as
``{"success": false, "message": ...}``. ``Internal`` (and ``StoreUnavailable``)
render as HTTP 500 with a generic message.
"""
from __future__ import annotations


class AuthError(Exception):
    kind = "error"
    status_code = 200
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    kind = "validation_error"
    default_message = "Missing details"


class Conflict(AuthError):
    kind = "conflict"
    default_message = "User already exists"


class InvalidCredentials(AuthError):
    kind = "invalid_credentials"
    default_message = "Invalid email or password"


class NotFound(AuthError):
    kind = "not_found"
    default_message = "User not found"


class InvalidOtp(AuthError):
    kind = "invalid_otp"
    default_message = "Invalid OTP"


class ExpiredOtp(AuthError):
    kind = "expired_otp"
    default_message = "OTP expired"


class AlreadyVerified(AuthError):
    kind = "already_verified"
    default_message = "Account already verified"


class Unauthorized(AuthError):
    kind = "unauthorized"
    default_message = "Not authorized. Please log in again."


class InvalidToken(AuthError):
    kind = "invalid_token"
    default_message = "Invalid or expired token"


class Internal(AuthError):
    kind = "internal"
    status_code = 500
    default_message = "Internal server error"


class StoreUnavailable(Internal):
    kind = "store_unavailable"
