"""
Schemas for student records managed from the admin pages.

Values come from HTML forms, so blank optional inputs are normalized to
None before validation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Optional

from app.schemas.auth import (
    NIM_PATTERN,
    NAME_PATTERN,
    MIN_PASSWORD_LENGTH,
    coerce_nim,
    check_institution_email,
)


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AdminStudentUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=MIN_PASSWORD_LENGTH)
    is_active: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", "password", mode="before")
    @classmethod
    def optional_blank(cls, value: Any) -> Any:
        return blank_to_none(value)

    @field_validator("email")
    @classmethod
    def institution_email(cls, value: Optional[str]) -> Optional[str]:
        return check_institution_email(value)


class AdminStudentCreate(AdminStudentUpdate):
    nim: str = Field(..., pattern=NIM_PATTERN)
    is_active: bool = True

    @field_validator("nim", mode="before")
    @classmethod
    def normalize_nim(cls, value: Any) -> Any:
        return coerce_nim(value)

    @property
    def program_code(self) -> str:
        return self.nim[2:6]

