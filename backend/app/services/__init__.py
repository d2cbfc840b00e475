from app.services.email_service import EmailService, email_service
from app.services.token_service import AccessTokenService, access_token_service
from app.services.password_reset_service import PasswordResetService, password_reset_service
from app.services.student_service import StudentService, student_service

__all__ = [
    "EmailService",
    "email_service",
    "AccessTokenService",
    "access_token_service",
    "PasswordResetService",
    "password_reset_service",
    "StudentService",
    "student_service",
]
