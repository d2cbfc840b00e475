"""
Database Seed Data Module

Programs of study (required: registration looks the program up from the
NIM) and optional sample students for local development.
Run with: python -m app.db.seed_data [--with-students | clear]
"""
import asyncio
import random
import sys
from datetime import datetime, timedelta
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import session_scope, init_db
from app.core.security import get_password_hash
from app.models.program_of_study import ProgramOfStudy
from app.models.student import Student
from app.models.access_token import PersonalAccessToken
from app.models.password_reset import PasswordReset


# ==================== Sample Data Constants ====================

# code = digits 3-6 of the NIM
PROGRAMS_OF_STUDY = [
    {"code": "1511", "name": "Teknik Informatika", "department": "Teknik Komputer dan Informatika", "degree": "D3"},
    {"code": "1524", "name": "Teknik Informatika", "department": "Teknik Komputer dan Informatika", "degree": "D4"},
    {"code": "1111", "name": "Teknik Konstruksi Gedung", "department": "Teknik Sipil", "degree": "D3"},
    {"code": "1211", "name": "Teknik Mesin", "department": "Teknik Mesin", "degree": "D3"},
    {"code": "1311", "name": "Teknik Kimia", "department": "Teknik Kimia", "degree": "D3"},
    {"code": "1411", "name": "Teknik Elektronika", "department": "Teknik Elektro", "degree": "D3"},
    {"code": "1424", "name": "Teknik Elektronika", "department": "Teknik Elektro", "degree": "D4"},
    {"code": "1611", "name": "Akuntansi", "department": "Akuntansi", "degree": "D3"},
    {"code": "1711", "name": "Administrasi Bisnis", "department": "Administrasi Niaga", "degree": "D3"},
    {"code": "1811", "name": "Bahasa Inggris", "department": "Bahasa Inggris", "degree": "D3"},
]

SAMPLE_STUDENT_NAMES = [
    "Adi Nugraha", "Budi Santoso", "Citra Lestari", "Dewi Anggraini", "Eka Prasetya",
    "Fajar Ramadhan", "Gita Permata", "Hendra Wijaya", "Indah Sari", "Joko Susilo",
    "Kartika Putri", "Lukman Hakim", "Maya Rahmawati", "Nanda Pratama", "Oki Setiawan",
    "Putri Ayu", "Rizky Maulana", "Siti Nurhaliza", "Taufik Hidayat", "Wulan Dari",
]

DEFAULT_STUDENT_PASSWORD = "password"


# ==================== Seed Functions ====================

async def seed_programs_of_study(db: AsyncSession) -> List[ProgramOfStudy]:
    """Insert missing programs of study (idempotent)"""
    result = await db.execute(select(ProgramOfStudy.code))
    existing = set(result.scalars().all())

    programs = []
    for program_data in PROGRAMS_OF_STUDY:
        if program_data["code"] in existing:
            continue
        program = ProgramOfStudy(**program_data)
        db.add(program)
        programs.append(program)

    await db.flush()
    print(f"Created {len(programs)} programs of study")
    return programs


async def seed_students(db: AsyncSession, year: str = "21") -> List[Student]:
    """Create verified sample students spread across the programs"""
    hashed = get_password_hash(DEFAULT_STUDENT_PASSWORD)
    students = []

    for index, name in enumerate(SAMPLE_STUDENT_NAMES, start=1):
        program = PROGRAMS_OF_STUDY[index % len(PROGRAMS_OF_STUDY)]
        nim = f"{year}{program['code']}{index:03d}"
        if await db.get(Student, nim) is not None:
            continue

        username = name.lower().replace(" ", ".")
        created_at = datetime.utcnow() - timedelta(days=random.randint(1, 365))
        student = Student(
            nim=nim,
            name=name,
            email=f"{username}.{nim[-3:]}@polban.ac.id",
            hashed_password=hashed,
            is_active=True,
            email_verified_at=created_at + timedelta(hours=1),
            program_code=program["code"],
            created_at=created_at,
        )
        db.add(student)
        students.append(student)

    await db.flush()
    print(f"Created {len(students)} sample students (password: {DEFAULT_STUDENT_PASSWORD})")
    return students


async def seed_all(with_students: bool = False):
    """Seed reference data, plus sample students when asked"""
    print("=" * 50)
    print("Starting database seeding...")
    print("=" * 50)

    await init_db()

    async with session_scope() as db:
        await seed_programs_of_study(db)
        if with_students:
            await seed_students(db)

    print("=" * 50)
    print("Database seeding completed successfully!")
    print("=" * 50)


async def clear_all():
    """Clear student data (programs of study are kept)"""
    print("Clearing all data...")
    async with session_scope() as db:
        # Delete in reverse order of dependencies
        await db.execute(delete(PersonalAccessToken))
        await db.execute(delete(PasswordReset))
        await db.execute(delete(Student))
    print("All student data cleared!")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all(with_students="--with-students" in sys.argv))
