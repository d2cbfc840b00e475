"""
Personal access tokens for the student API.

The plaintext token is handed to the client once at login; only its
sha256 digest is stored.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from datetime import datetime
from typing import Optional

from app.core.security import generate_access_token, hash_access_token, access_token_matches
from app.models.access_token import PersonalAccessToken
from app.models.student import Student


class AccessTokenService:
    """Issue, resolve and revoke bearer tokens"""

    @staticmethod
    def token_name(student: Student) -> str:
        return f"secret{student.nim}"

    async def issue(self, db: AsyncSession, student: Student) -> str:
        """Create a token row for the student and return the plaintext token"""
        plain_token = generate_access_token()
        db.add(PersonalAccessToken(
            student_nim=student.nim,
            name=self.token_name(student),
            token_hash=hash_access_token(plain_token),
        ))
        await db.flush()
        return plain_token

    async def resolve(self, db: AsyncSession, plain_token: str) -> Optional[PersonalAccessToken]:
        """Find the token row (with its student) and stamp last_used_at"""
        result = await db.execute(
            select(PersonalAccessToken)
            .options(selectinload(PersonalAccessToken.student))
            .where(PersonalAccessToken.token_hash == hash_access_token(plain_token))
        )
        access_token = result.scalar_one_or_none()
        if access_token is None or not access_token_matches(plain_token, access_token.token_hash):
            return None

        access_token.last_used_at = datetime.utcnow()
        return access_token

    async def revoke(self, db: AsyncSession, access_token: PersonalAccessToken) -> None:
        await db.execute(
            delete(PersonalAccessToken).where(PersonalAccessToken.id == access_token.id)
        )

    async def revoke_all(self, db: AsyncSession, student_nim: str) -> int:
        """Drop every token of a student (password reset, admin deletion)"""
        result = await db.execute(
            delete(PersonalAccessToken).where(PersonalAccessToken.student_nim == student_nim)
        )
        return result.rowcount or 0


# Singleton instance
access_token_service = AccessTokenService()
