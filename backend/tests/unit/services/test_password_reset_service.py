"""
Unit Tests for PasswordResetService
Codes are bound to the email they were issued for, expire, and are single use.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select, func

from app.core.config import settings
from app.core.exceptions import InvalidOTPError
from app.models import PasswordReset
from app.services.password_reset_service import password_reset_service

EMAIL = "budi.santoso@polban.ac.id"


async def count_codes(db_session, email: str = EMAIL) -> int:
    return await db_session.scalar(
        select(func.count()).select_from(PasswordReset).where(PasswordReset.email == email)
    )


class TestIssueCode:

    @pytest.mark.asyncio
    async def test_issue_code(self, db_session):
        reset = await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        assert reset.id is not None
        assert len(reset.otp) == 4
        assert reset.verified_at is None

    @pytest.mark.asyncio
    async def test_issue_code_replaces_previous(self, db_session):
        await password_reset_service.issue_code(db_session, EMAIL)
        await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        assert await count_codes(db_session) == 1

    @pytest.mark.asyncio
    async def test_issue_code_keeps_other_emails(self, db_session):
        await password_reset_service.issue_code(db_session, "other@polban.ac.id")
        await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        assert await count_codes(db_session, "other@polban.ac.id") == 1


class TestVerifyCode:

    @pytest.mark.asyncio
    async def test_verify_code_marks_row(self, db_session):
        reset = await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        reset_id = await password_reset_service.verify_code(db_session, EMAIL, reset.otp)

        assert reset_id == reset.id
        assert await password_reset_service.is_verified(db_session, EMAIL, reset_id) is True

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, db_session):
        reset = await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        await password_reset_service.verify_code(db_session, EMAIL, reset.otp)

        with pytest.raises(InvalidOTPError):
            await password_reset_service.verify_code(db_session, EMAIL, reset.otp)

    @pytest.mark.asyncio
    async def test_code_bound_to_email(self, db_session):
        reset = await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        with pytest.raises(InvalidOTPError):
            await password_reset_service.verify_code(db_session, "other@polban.ac.id", reset.otp)

    @pytest.mark.asyncio
    async def test_expired_code_rejected(self, db_session):
        expired_at = datetime.utcnow() - timedelta(minutes=settings.OTP_EXPIRE_MINUTES + 1)
        db_session.add(PasswordReset(email=EMAIL, otp="4821", created_at=expired_at))
        await db_session.commit()

        with pytest.raises(InvalidOTPError):
            await password_reset_service.verify_code(db_session, EMAIL, "4821")

    @pytest.mark.asyncio
    async def test_is_verified_false_for_other_email(self, db_session):
        reset = await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()
        reset_id = await password_reset_service.verify_code(db_session, EMAIL, reset.otp)

        assert await password_reset_service.is_verified(db_session, "other@polban.ac.id", reset_id) is False

    @pytest.mark.asyncio
    async def test_clear(self, db_session):
        await password_reset_service.issue_code(db_session, EMAIL)
        await db_session.commit()

        await password_reset_service.clear(db_session, EMAIL)
        await db_session.commit()

        assert await count_codes(db_session) == 0
