"""
Student Service - student record lookups and admin CRUD

Handles:
- Lookups by NIM and email
- Uniqueness checks reported as field errors
- Create, update and delete from the admin pages
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select
from datetime import datetime
from typing import Dict, List, Optional

from app.core.security import get_password_hash
from app.models.program_of_study import ProgramOfStudy
from app.models.student import Student
from app.schemas.student import AdminStudentCreate, AdminStudentUpdate
from app.services.password_reset_service import password_reset_service
from app.services.token_service import access_token_service

NIM_TAKEN = "The nim has already been taken."
EMAIL_TAKEN = "The email has already been taken."
PROGRAM_NOT_FOUND = "No program of study is registered for this NIM."


class StudentService:
    """Service for student records"""

    async def get_by_nim(self, db: AsyncSession, nim: str) -> Optional[Student]:
        return await db.get(Student, nim)

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[Student]:
        result = await db.execute(
            select(Student).where(func.lower(Student.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_program(self, db: AsyncSession, code: str) -> Optional[ProgramOfStudy]:
        return await db.get(ProgramOfStudy, code)

    async def uniqueness_errors(
        self,
        db: AsyncSession,
        nim: Optional[str],
        email: Optional[str],
        exclude_nim: Optional[str] = None
    ) -> Dict[str, List[str]]:
        """
        Field errors for a NIM and/or email that already belong to a student.

        exclude_nim skips the record being edited.
        """
        errors: Dict[str, List[str]] = {}
        if nim and await self.get_by_nim(db, nim) is not None:
            errors["nim"] = [NIM_TAKEN]
        if email:
            owner = await self.get_by_email(db, email)
            if owner is not None and owner.nim != exclude_nim:
                errors["email"] = [EMAIL_TAKEN]
        return errors

    def search_query(self, q: Optional[str] = None) -> Select:
        """Students ordered by NIM, optionally filtered on NIM, name or email"""
        query = select(Student).options(selectinload(Student.program)).order_by(Student.nim)
        if q and q.strip():
            pattern = f"%{q.strip()}%"
            query = query.where(or_(
                Student.nim.ilike(pattern),
                Student.name.ilike(pattern),
                Student.email.ilike(pattern),
            ))
        return query

    async def create(self, db: AsyncSession, data: AdminStudentCreate) -> Student:
        """Insert an admin-created student; email and password may be empty"""
        student = Student(
            nim=data.nim,
            name=data.name,
            email=data.email,
            hashed_password=get_password_hash(data.password) if data.password else None,
            is_active=data.is_active,
            program_code=data.program_code,
        )
        db.add(student)
        await db.flush()
        return student

    async def update(self, db: AsyncSession, student: Student, data: AdminStudentUpdate) -> Student:
        """Apply admin edits; a blank password keeps the current one"""
        if data.email != student.email:
            # A new address has to be verified again
            student.email_verified_at = None
        student.name = data.name
        student.email = data.email
        student.is_active = data.is_active
        if data.password:
            student.hashed_password = get_password_hash(data.password)
        student.updated_at = datetime.utcnow()
        await db.flush()
        return student

    async def delete(self, db: AsyncSession, student: Student) -> None:
        """Delete the student together with its tokens and reset codes"""
        await access_token_service.revoke_all(db, student.nim)
        if student.email:
            await password_reset_service.clear(db, student.email)
        await db.delete(student)
        await db.flush()


# Singleton instance
student_service = StudentService()
