#!/usr/bin/env python3
"""Setup script for the travel back office API."""

import asyncio
import logging
import os
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from sqlalchemy import select

from backoffice.core.config import settings
from backoffice.core.database import create_engine_for, init_platform_db, session_factory_for
from backoffice.core.security import hash_password
from backoffice.models import PlatformUser

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def setup_database(engine):
    """Create the platform registry schema."""
    logger.info("Setting up platform database...")
    await init_platform_db(engine)
    logger.info("Platform database setup completed")


async def seed_super_admin(engine):
    """Create the super admin from SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD."""
    email = os.environ.get("SUPER_ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("SUPER_ADMIN_PASSWORD", "")
    name = os.environ.get("SUPER_ADMIN_NAME", "Super Admin")

    if not email or not password:
        logger.warning("SUPER_ADMIN_EMAIL or SUPER_ADMIN_PASSWORD not set, skipping super admin")
        return

    sessions = session_factory_for(engine)
    async with sessions() as db:
        try:
            existing = await db.execute(select(PlatformUser).where(PlatformUser.email == email))
            if existing.scalar_one_or_none() is not None:
                logger.info("Super admin already exists, skipping...")
                return

            db.add(PlatformUser(name=name, email=email, password_hash=hash_password(password)))
            await db.commit()
            logger.info(f"Super admin {email} created")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create super admin: {e}")
            raise


async def main():
    """Main setup function."""
    logger.info("Starting travel back office setup...")

    engine = create_engine_for(settings.database_url)
    try:
        await setup_database(engine)
        await seed_super_admin(engine)
    finally:
        await engine.dispose()

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn backoffice.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
