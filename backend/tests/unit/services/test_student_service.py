"""
Unit Tests for StudentService and AccessTokenService
"""
import pytest
from sqlalchemy import select, func

from app.core.security import verify_password
from app.models import PersonalAccessToken, Student
from app.schemas.student import AdminStudentCreate, AdminStudentUpdate
from app.services.student_service import student_service, NIM_TAKEN, EMAIL_TAKEN
from app.services.token_service import access_token_service


class TestUniqueness:

    @pytest.mark.asyncio
    async def test_reports_both_fields(self, db_session, test_student):
        errors = await student_service.uniqueness_errors(
            db_session, "211524001", "budi.santoso@polban.ac.id"
        )

        assert errors == {"nim": [NIM_TAKEN], "email": [EMAIL_TAKEN]}

    @pytest.mark.asyncio
    async def test_excludes_record_being_edited(self, db_session, test_student):
        errors = await student_service.uniqueness_errors(
            db_session, None, "budi.santoso@polban.ac.id", exclude_nim="211524001"
        )

        assert errors == {}


class TestSearch:

    @pytest.mark.asyncio
    async def test_search_matches_name_case_insensitively(self, db_session, test_student, unverified_student):
        result = await db_session.execute(student_service.search_query("BUDI"))

        assert [s.nim for s in result.scalars().all()] == ["211524001"]

    @pytest.mark.asyncio
    async def test_blank_search_lists_all_ordered_by_nim(self, db_session, test_student, unverified_student):
        result = await db_session.execute(student_service.search_query("  "))

        assert [s.nim for s in result.scalars().all()] == ["211524001", "211524002"]


class TestCreateUpdateDelete:

    @pytest.mark.asyncio
    async def test_create_hashes_password(self, db_session, program):
        data = AdminStudentCreate(nim="211524040", name="Rina", password="rahasia123")

        student = await student_service.create(db_session, data)
        await db_session.commit()

        assert student.program_code == "1524"
        assert verify_password("rahasia123", student.hashed_password)

    @pytest.mark.asyncio
    async def test_update_blank_password_keeps_hash(self, db_session, test_student):
        old_hash = test_student.hashed_password

        await student_service.update(
            db_session,
            test_student,
            AdminStudentUpdate(name="Budi", email="budi.santoso@polban.ac.id", is_active=True)
        )

        assert test_student.hashed_password == old_hash
        assert test_student.email_verified_at is not None

    @pytest.mark.asyncio
    async def test_update_email_resets_verification(self, db_session, test_student):
        await student_service.update(
            db_session,
            test_student,
            AdminStudentUpdate(name="Budi", email="budi.lain@polban.ac.id", password="baru12345")
        )

        assert test_student.email_verified_at is None
        assert verify_password("baru12345", test_student.hashed_password)

    @pytest.mark.asyncio
    async def test_delete_revokes_tokens(self, db_session, test_student):
        await access_token_service.issue(db_session, test_student)
        await db_session.commit()

        await student_service.delete(db_session, test_student)
        await db_session.commit()

        assert await db_session.scalar(select(func.count()).select_from(Student)) == 0
        assert await db_session.scalar(select(func.count()).select_from(PersonalAccessToken)) == 0


class TestAccessTokens:

    @pytest.mark.asyncio
    async def test_issue_and_resolve(self, db_session, test_student):
        plain = await access_token_service.issue(db_session, test_student)
        await db_session.commit()

        access_token = await access_token_service.resolve(db_session, plain)

        assert access_token is not None
        assert access_token.student.nim == "211524001"
        assert access_token.last_used_at is not None

    @pytest.mark.asyncio
    async def test_resolve_unknown_token(self, db_session, test_student):
        assert await access_token_service.resolve(db_session, "unknown") is None

    @pytest.mark.asyncio
    async def test_revoke_all(self, db_session, test_student):
        await access_token_service.issue(db_session, test_student)
        await access_token_service.issue(db_session, test_student)
        await db_session.commit()

        removed = await access_token_service.revoke_all(db_session, "211524001")

        assert removed == 2
        result = await db_session.execute(select(PersonalAccessToken))
        assert result.scalars().all() == []
