from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from typing import Any, Optional
from datetime import datetime

from app.core.config import settings

NIM_PATTERN = r'^\d{9}$'
NAME_PATTERN = r'^[a-zA-Z\s.]*$'
MIN_PASSWORD_LENGTH = 6
MAX_EMAIL_LENGTH = 50


def coerce_nim(value: Any) -> Any:
    """NIMs arrive as JSON numbers from some clients"""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Mailboxes are case-insensitive; store and compare them lowercased"""
    if value is None:
        return value
    return value.strip().lower()


def check_institution_email(value: Optional[str]) -> Optional[str]:
    """Lowercased address on the institution domain or one of its subdomains"""
    value = normalize_email(value)
    if value is None:
        return value
    if len(value) > MAX_EMAIL_LENGTH:
        raise ValueError(f"The email may not be greater than {MAX_EMAIL_LENGTH} characters.")
    domain = value.rsplit("@", 1)[-1]
    allowed = settings.INSTITUTION_EMAIL_DOMAIN.lower()
    if domain != allowed and not domain.endswith("." + allowed):
        raise ValueError(
            f"The email must be a {settings.INSTITUTION_EMAIL_DOMAIN} address."
        )
    return value


def check_password_confirmation(value: str, info: ValidationInfo) -> str:
    password = info.data.get("password")
    if password is not None and value != password:
        raise ValueError("The password confirmation does not match.")
    return value


# ============================================
# Registration & Login
# ============================================

class StudentRegister(BaseModel):
    nim: str = Field(..., pattern=NIM_PATTERN, description="9-digit student number")
    name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    password_confirmation: str

    @field_validator("nim", mode="before")
    @classmethod
    def normalize_nim(cls, value: Any) -> Any:
        return coerce_nim(value)

    @field_validator("email")
    @classmethod
    def institution_email(cls, value: str) -> str:
        return check_institution_email(value)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        return check_password_confirmation(value, info)

    @property
    def program_code(self) -> str:
        return self.nim[2:6]


class StudentLogin(BaseModel):
    nim: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("nim", mode="before")
    @classmethod
    def normalize_nim(cls, value: Any) -> Any:
        return coerce_nim(value)


class StudentResponse(BaseModel):
    nim: str
    name: str
    email: Optional[str] = None
    program_code: str
    is_active: bool
    email_verified_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    student: StudentResponse


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    student: StudentResponse


# ============================================
# Email verification
# ============================================

class ResendVerificationRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return normalize_email(value)


class VerifyEmailResponse(BaseModel):
    message: str
    already_verified: bool = False


# ============================================
# Password recovery
# ============================================

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return normalize_email(value)


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., pattern=r'^\d{4}$')

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("otp", mode="before")
    @classmethod
    def coerce_otp(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class VerifyOTPResponse(BaseModel):
    message: str
    email: str
    reset_token: str


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        return check_password_confirmation(value, info)


class MessageResponse(BaseModel):
    message: str
