#!/usr/bin/env python3
"""
Database Initialization Script for SIAKAD

This script:
1. Tests database connectivity
2. Runs Alembic migrations
3. Creates any missing tables
4. Seeds programs of study (and sample students if asked)

Usage:
    python scripts/init_db.py                    # Full init
    python scripts/init_db.py --migrate          # Only run migrations
    python scripts/init_db.py --check            # Only check connectivity
    python scripts/init_db.py --seed             # Also seed sample students
    python scripts/init_db.py --status           # Show table status
"""

import asyncio
import sys
import os
import argparse
import traceback
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def test_connection() -> bool:
    """Test database connectivity"""
    print("\n[InitDB] Testing database connection...")

    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError
    from app.core.database import get_engine, get_database_url, close_db

    db_url = get_database_url()
    print(f"[InitDB] Connecting to: {db_url.split('@')[1] if '@' in db_url else db_url}")

    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchone()
    except (SQLAlchemyError, OSError) as e:
        print(f"[InitDB] ERROR: Database connection failed: {e}")
        return False
    finally:
        await close_db()

    print("[InitDB] Database connection successful!")
    return True


def run_migrations() -> bool:
    """Run Alembic migrations"""
    print("\n[InitDB] Running database migrations...")

    from alembic.config import Config
    from alembic import command
    from alembic.util import CommandError

    backend_dir = Path(__file__).resolve().parent.parent
    alembic_ini = backend_dir / "alembic.ini"

    if not alembic_ini.exists():
        print(f"[InitDB] ERROR: alembic.ini not found at {alembic_ini}")
        return False

    os.chdir(backend_dir)
    alembic_cfg = Config(str(alembic_ini))

    try:
        print("[InitDB] Current database revision:")
        command.current(alembic_cfg)

        print("\n[InitDB] Upgrading to latest revision...")
        command.upgrade(alembic_cfg, "head")

        print("[InitDB] Migrations completed successfully!")
        print("\n[InitDB] New database revision:")
        command.current(alembic_cfg)
        return True

    except CommandError as e:
        print(f"[InitDB] ERROR: Migration failed: {e}")
        traceback.print_exc()
        return False


async def create_tables() -> bool:
    """Create database tables using SQLAlchemy"""
    print("\n[InitDB] Creating/verifying database tables...")

    from sqlalchemy.exc import SQLAlchemyError
    from app.core.database import init_db, close_db

    try:
        await init_db()
    except SQLAlchemyError as e:
        print(f"[InitDB] ERROR: Table creation failed: {e}")
        traceback.print_exc()
        return False
    finally:
        await close_db()

    print("[InitDB] Database tables created/verified!")
    return True


async def seed_data(with_students: bool) -> bool:
    """Seed programs of study, optionally sample students"""
    print("\n[InitDB] Seeding initial data...")

    from sqlalchemy.exc import SQLAlchemyError
    from app.core.database import close_db
    from app.db.seed_data import seed_all

    try:
        await seed_all(with_students=with_students)
    except SQLAlchemyError as e:
        print(f"[InitDB] WARNING: Seed data failed: {e}")
        return False
    finally:
        await close_db()

    print("[InitDB] Seed data completed!")
    return True


async def show_table_status():
    """Show current table status"""
    print("\n[InitDB] Database Table Status:")
    print("-" * 50)

    from sqlalchemy import inspect
    from app.core.database import get_engine, close_db

    def describe(sync_conn):
        inspector = inspect(sync_conn)
        return {
            table: len(inspector.get_columns(table))
            for table in inspector.get_table_names()
        }

    try:
        async with get_engine().connect() as conn:
            tables = await conn.run_sync(describe)
    finally:
        await close_db()

    print(f"Total tables: {len(tables)}")
    print("\nTables:")
    for table in sorted(tables):
        print(f"  - {table} ({tables[table]} columns)")


def main():
    """Main initialization function"""
    parser = argparse.ArgumentParser(description="SIAKAD Database Initialization")
    parser.add_argument("--check", action="store_true", help="Only check connectivity")
    parser.add_argument("--migrate", action="store_true", help="Only run migrations")
    parser.add_argument("--tables", action="store_true", help="Only create tables")
    parser.add_argument("--seed", action="store_true", help="Also seed sample students")
    parser.add_argument("--status", action="store_true", help="Show table status")

    args = parser.parse_args()

    print("=" * 50)
    print("  SIAKAD - Database Initialization")
    print("=" * 50)

    success = True

    # Always test connection first
    if not asyncio.run(test_connection()):
        print("\n[InitDB] FAILED: Cannot connect to database")
        sys.exit(1)

    if args.check:
        print("\n[InitDB] Connection check completed!")
        sys.exit(0)

    if args.status:
        asyncio.run(show_table_status())
        sys.exit(0)

    # Alembic's env.py runs its own event loop, so this stays outside asyncio.run
    if args.migrate or not args.tables:
        if not run_migrations():
            print("[InitDB] WARNING: Migrations had issues, trying table creation...")
            success = False

    # Create tables (as fallback or if requested)
    if args.tables or not success:
        if not asyncio.run(create_tables()):
            print("[InitDB] FAILED: Could not create tables")
            sys.exit(1)

    if not args.migrate:
        asyncio.run(seed_data(with_students=args.seed))

    asyncio.run(show_table_status())

    print("\n" + "=" * 50)
    print("  Database Initialization Complete!")
    print("=" * 50)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
