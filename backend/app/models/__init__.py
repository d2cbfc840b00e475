# Re-export all models for convenient imports
from app.models.program_of_study import ProgramOfStudy
from app.models.student import Student
from app.models.access_token import PersonalAccessToken
from app.models.password_reset import PasswordReset
from app.models.admin import Admin

__all__ = [
    "ProgramOfStudy",
    "Student",
    "PersonalAccessToken",
    "PasswordReset",
    "Admin",
]
