from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AccountInactiveError
from app.core.logging_config import set_user_id
from app.models.access_token import PersonalAccessToken
from app.models.admin import Admin
from app.models.student import Student
from app.services.token_service import access_token_service

security = HTTPBearer(auto_error=False)

ADMIN_SESSION_KEY = "admin_id"


class AdminLoginRequired(Exception):
    """Raised for admin pages requested without an admin session"""


async def get_current_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> PersonalAccessToken:
    """Resolve the bearer token sent with the request"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthenticated.", code="UNAUTHENTICATED")

    access_token = await access_token_service.resolve(db, credentials.credentials)
    if access_token is None:
        raise AuthenticationError("Unauthenticated.", code="UNAUTHENTICATED")

    request.state.student_nim = access_token.student_nim
    set_user_id(access_token.student_nim)
    return access_token


async def get_current_student(
    access_token: PersonalAccessToken = Depends(get_current_access_token)
) -> Student:
    """Get current authenticated student"""
    student = access_token.student
    if not student.is_active:
        raise AccountInactiveError()
    return student


async def get_current_admin(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> Admin:
    """Get the admin stored in the session, or send the browser to the login page"""
    admin_id = request.session.get(ADMIN_SESSION_KEY)
    if not admin_id:
        raise AdminLoginRequired()

    result = await db.execute(select(Admin).where(Admin.id == admin_id))
    admin = result.scalar_one_or_none()

    if admin is None or not admin.is_active:
        request.session.pop(ADMIN_SESSION_KEY, None)
        raise AdminLoginRequired()

    set_user_id(f"admin:{admin.username}")
    return admin
