"""
Password Reset Service - one-time codes for forgotten passwords

Flow:
1. issue_code: replace any earlier codes for the email with a fresh one
2. verify_code: match email and code (unused, not expired), mark it verified
3. is_verified: check the row referenced by a reset token
4. clear: delete every code for the email once the password is changed
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import bindparam, delete, text, DateTime, Integer, String
from datetime import datetime, timedelta

from app.core.config import settings
from app.core.exceptions import InvalidOTPError
from app.core.security import generate_otp
from app.models.password_reset import PasswordReset


_FIND_USABLE_CODE = text(
    """
    SELECT id FROM password_resets
    WHERE email = :email
      AND otp = :otp
      AND verified_at IS NULL
      AND created_at >= :not_before
    ORDER BY id DESC
    LIMIT 1
    """
).bindparams(
    bindparam("email", type_=String),
    bindparam("otp", type_=String),
    bindparam("not_before", type_=DateTime),
).columns(id=Integer)

_MARK_VERIFIED = text(
    "UPDATE password_resets SET verified_at = :verified_at WHERE id = :id"
).bindparams(
    bindparam("verified_at", type_=DateTime),
    bindparam("id", type_=Integer),
)

_FIND_VERIFIED = text(
    """
    SELECT id FROM password_resets
    WHERE id = :id
      AND email = :email
      AND verified_at IS NOT NULL
    """
).bindparams(
    bindparam("id", type_=Integer),
    bindparam("email", type_=String),
).columns(id=Integer)


class PasswordResetService:
    """Service for password reset codes"""

    async def issue_code(self, db: AsyncSession, email: str) -> PasswordReset:
        """
        Replace earlier codes for the email with a new one.

        Flushes but does not commit; the caller commits once the code has
        actually been mailed.
        """
        await self.clear(db, email)
        reset = PasswordReset(email=email, otp=generate_otp(), created_at=datetime.utcnow())
        db.add(reset)
        await db.flush()
        return reset

    async def verify_code(self, db: AsyncSession, email: str, otp: str) -> int:
        """
        Mark the matching code as verified and return its row id.

        Raises InvalidOTPError when no unused, unexpired code was issued
        for this email.
        """
        not_before = datetime.utcnow() - timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
        result = await db.execute(
            _FIND_USABLE_CODE,
            {"email": email, "otp": otp, "not_before": not_before},
        )
        reset_id = result.scalar_one_or_none()
        if reset_id is None:
            raise InvalidOTPError()

        await db.execute(_MARK_VERIFIED, {"verified_at": datetime.utcnow(), "id": reset_id})
        return reset_id

    async def is_verified(self, db: AsyncSession, email: str, reset_id: int) -> bool:
        result = await db.execute(_FIND_VERIFIED, {"id": reset_id, "email": email})
        return result.scalar_one_or_none() is not None

    async def clear(self, db: AsyncSession, email: str) -> None:
        await db.execute(delete(PasswordReset).where(PasswordReset.email == email))


# Singleton instance
password_reset_service = PasswordResetService()
