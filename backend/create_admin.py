"""Create or update an admin account for the /admin pages

Usage:
    python create_admin.py --username admin --full-name "Academic Office"
    python create_admin.py --username admin --password secret123
"""
import argparse
import asyncio
import getpass
import sys

from sqlalchemy import select

from app.core.database import session_scope, init_db, close_db
from app.core.security import get_password_hash
from app.models.admin import Admin


async def create_admin(username: str, password: str, full_name: str = None):
    await init_db()

    async with session_scope() as db:
        result = await db.execute(select(Admin).where(Admin.username == username))
        existing = result.scalar_one_or_none()

        if existing:
            existing.hashed_password = get_password_hash(password)
            existing.is_active = True
            if full_name:
                existing.full_name = full_name
            print(f"Updated existing admin: {username}")
        else:
            db.add(Admin(
                username=username,
                full_name=full_name,
                hashed_password=get_password_hash(password),
                is_active=True,
            ))
            print(f"Created admin: {username}")

    await close_db()
    print("\nLogin at /admin/login")


def main():
    parser = argparse.ArgumentParser(description="Create or update a SIAKAD admin account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--full-name", default=None)
    parser.add_argument("--password", default=None, help="Prompted for when omitted")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    asyncio.run(create_admin(args.username, password, args.full_name))


if __name__ == "__main__":
    main()
