"""
SIAKAD - Test Configuration and Fixtures
"""
import os
import re
from datetime import datetime
from typing import AsyncGenerator, Callable, Awaitable
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.models import ProgramOfStudy, Student, Admin
from app.services.email_service import email_service
from app.services.token_service import access_token_service

fake = Faker()

STUDENT_PASSWORD = 'password123'
ADMIN_PASSWORD = 'adminpassword123'

_CSRF_INPUT = re.compile(r'name="_token" value="([^"]+)"')

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def program(db_session: AsyncSession) -> ProgramOfStudy:
    """D4 Teknik Informatika, the program of NIMs 21 1524 xxx"""
    program = ProgramOfStudy(
        code='1524',
        name='D4 Teknik Informatika',
        department='Teknik Komputer dan Informatika',
        degree='D4'
    )
    db_session.add(program)
    await db_session.commit()
    return program


@pytest.fixture
async def test_student(db_session: AsyncSession, program: ProgramOfStudy) -> Student:
    """An active student with a verified email"""
    student = Student(
        nim='211524001',
        name='Budi Santoso',
        email='budi.santoso@polban.ac.id',
        hashed_password=get_password_hash(STUDENT_PASSWORD),
        is_active=True,
        email_verified_at=datetime.utcnow(),
        program_code=program.code
    )
    db_session.add(student)
    await db_session.commit()
    await db_session.refresh(student)
    return student


@pytest.fixture
async def unverified_student(db_session: AsyncSession, program: ProgramOfStudy) -> Student:
    student = Student(
        nim='211524002',
        name='Siti Rahayu',
        email='siti.rahayu@polban.ac.id',
        hashed_password=get_password_hash(STUDENT_PASSWORD),
        is_active=True,
        program_code=program.code
    )
    db_session.add(student)
    await db_session.commit()
    await db_session.refresh(student)
    return student


@pytest.fixture
async def auth_headers(db_session: AsyncSession, test_student: Student) -> dict:
    """Bearer header carrying a freshly issued personal access token"""
    token = await access_token_service.issue(db_session, test_student)
    await db_session.commit()
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> Admin:
    admin = Admin(
        username='admin',
        full_name=fake.name(),
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        is_active=True
    )
    db_session.add(admin)
    await db_session.commit()
    await db_session.refresh(admin)
    return admin


@pytest.fixture
def csrf_token() -> Callable[[AsyncClient, str], Awaitable[str]]:
    """Load an admin page and return the CSRF token embedded in its forms"""
    async def fetch(client: AsyncClient, path: str = '/admin/login') -> str:
        response = await client.get(path)
        match = _CSRF_INPUT.search(response.text)
        assert match, f'No CSRF token found on {path}'
        return match.group(1)
    return fetch


@pytest.fixture
async def admin_client(client: AsyncClient, admin_user: Admin, csrf_token) -> AsyncClient:
    """Test client holding a logged-in admin session cookie"""
    token = await csrf_token(client, '/admin/login')
    response = await client.post(
        '/admin/login',
        data={'_token': token, 'username': admin_user.username, 'password': ADMIN_PASSWORD}
    )
    assert response.status_code == 303
    return client


@pytest.fixture
def mock_email():
    """Replace outgoing mail with AsyncMocks that report success"""
    with patch.object(email_service, 'send_verification_email', new=AsyncMock(return_value=True)) as verification, \
            patch.object(email_service, 'send_otp_email', new=AsyncMock(return_value=True)) as otp, \
            patch.object(email_service, 'send_password_changed_email', new=AsyncMock(return_value=True)) as changed:
        yield {
            'verification': verification,
            'otp': otp,
            'password_changed': changed,
        }
