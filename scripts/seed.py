"""
Database Bootstrap Script

Creates all tables and the default admin account.
Run from project root: python scripts/seed.py

Version: 1.0.0
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from feastflow.core.config import get_settings, setup_logging
from feastflow.database import async_session_maker, engine, init_db
from feastflow.services.auth import AuthService


async def seed(skip_admin: bool = False) -> None:
    """Create the schema, then the admin account unless skipped."""
    await init_db()

    if not skip_admin:
        async with async_session_maker() as session:
            admin = await AuthService(session).seed_default_admin()
            if admin is not None:
                print(f"✅ Default admin user created (email: {admin.email})")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create FeastFlow tables and seed data")
    parser.add_argument("--skip-admin", action="store_true", help="Do not create the admin account")
    args = parser.parse_args()

    setup_logging()
    settings = get_settings()
    print("=" * 60)
    print(f"🚀 Seeding database for {settings.app_name} ({settings.env_mode.value})")
    print("=" * 60)

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(seed(skip_admin=args.skip_admin))
