# Pydantic schemas
from app.schemas.auth import (
    StudentRegister,
    StudentLogin,
    StudentResponse,
    RegisterResponse,
    LoginResponse,
    ResendVerificationRequest,
    VerifyEmailResponse,
    ForgotPasswordRequest,
    VerifyOTPRequest,
    VerifyOTPResponse,
    ResetPasswordRequest,
    MessageResponse,
)
from app.schemas.student import AdminStudentCreate, AdminStudentUpdate

__all__ = [
    "StudentRegister",
    "StudentLogin",
    "StudentResponse",
    "RegisterResponse",
    "LoginResponse",
    "ResendVerificationRequest",
    "VerifyEmailResponse",
    "ForgotPasswordRequest",
    "VerifyOTPRequest",
    "VerifyOTPResponse",
    "ResetPasswordRequest",
    "MessageResponse",
    "AdminStudentCreate",
    "AdminStudentUpdate",
]
