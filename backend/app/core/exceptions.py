"""
Custom Exceptions for SIAKAD
============================

Raise these from endpoints and services instead of building error
responses by hand. Each carries the HTTP status it maps to; the handlers
registered in app.main turn them into the common error envelope.

Usage:
    from app.core.exceptions import StudentNotFoundError

    if not student:
        raise StudentNotFoundError(email)
"""

from typing import Optional, Any, Dict, List, Sequence


class SiakadError(Exception):
    """Base exception for all SIAKAD errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(SiakadError):
    """Input validation failed; details["errors"] maps field -> messages"""

    status_code = 400

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation error."):
        super().__init__(message, code="VALIDATION_ERROR", details={"errors": errors})

    @property
    def errors(self) -> Dict[str, List[str]]:
        return self.details["errors"]


class InvalidResetTokenError(SiakadError):
    """Password reset token is invalid, expired or already used"""

    status_code = 400

    def __init__(self):
        super().__init__("This password reset token is invalid.", code="INVALID_RESET_TOKEN")


class InvalidVerificationTokenError(SiakadError):
    """Email verification link is invalid, expired or for another address"""

    status_code = 400

    def __init__(self):
        super().__init__(
            "The verification link is invalid or has expired.",
            code="INVALID_VERIFICATION_TOKEN"
        )


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(SiakadError):
    """Student authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", code: str = "AUTH_FAILED"):
        super().__init__(message, code=code)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid NIM or password.", code="INVALID_CREDENTIALS")


class EmailNotVerifiedError(AuthenticationError):
    def __init__(self):
        super().__init__("Email address has not been verified.", code="EMAIL_NOT_VERIFIED")


class InvalidTokenError(AuthenticationError):
    """Signed token is invalid or expired"""

    def __init__(self):
        super().__init__("Invalid or expired token.", code="INVALID_TOKEN")


class AuthorizationError(SiakadError):
    """Student not allowed to perform this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", code: str = "NOT_AUTHORIZED"):
        super().__init__(message, code=code)


class AccountInactiveError(AuthorizationError):
    def __init__(self):
        super().__init__("Account is inactive.", code="ACCOUNT_INACTIVE")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(SiakadError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        code = resource_type.upper().replace(" ", "_") + "_NOT_FOUND"
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            code=code,
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, identifier: str):
        super().__init__("Student", identifier, message="Account is not registered.")


class ProgramOfStudyNotFoundError(ResourceNotFoundError):
    def __init__(self, code: str):
        super().__init__(
            "Program of study", code,
            message="No program of study is registered for this NIM."
        )


class InvalidOTPError(SiakadError):
    """No usable reset code matches the submitted one"""

    status_code = 404

    def __init__(self):
        super().__init__("Invalid OTP code.", code="INVALID_OTP")


# ============================================
# Delivery Errors (500-type)
# ============================================

class EmailDeliveryError(SiakadError):
    """Outgoing email could not be sent"""

    status_code = 500

    def __init__(self, message: str = "Email could not be sent."):
        super().__init__(message, code="EMAIL_DELIVERY_FAILED")


# ============================================
# Helpers for API responses
# ============================================

def error_response(error: SiakadError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "message": error.message,
        "error": error.to_dict()
    }


_LOCATION_PREFIXES = {"body", "query", "path", "form", "header", "cookie"}


def field_errors(errors: Sequence[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Group pydantic error dicts by field name.

    Request-location prefixes ("body", "query", ...) are dropped so that
    {"loc": ("body", "email")} is reported under "email".
    """
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc) or "__all__"
        message = error.get("msg", "Invalid value.")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        grouped.setdefault(field, []).append(message)
    return grouped
