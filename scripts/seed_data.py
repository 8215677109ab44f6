#!/usr/bin/env python3
"""
Seed Data Script
Create the tables and load the demo users, groups, categories and documents
"""

import argparse
import asyncio
import sys

from acdocs.core.config import settings
from acdocs.core.logging import get_logger, setup_logging
from acdocs.db.operations import DocumentStore
from acdocs.db.session import close_db, init_db

setup_logging()
logger = get_logger(__name__)


async def main(reset: bool = False) -> int:
    await init_db(seed=False)
    try:
        store = DocumentStore()
        if reset:
            await store.reset_database()
            logger.info("Database reset and reseeded")
        elif await store.seed_database():
            logger.info(f"Seeded {settings.DATABASE_URL}")
        else:
            logger.info("Database already has users, nothing to seed")

        for user in await store.get_all_users():
            logger.info(f"  {user.role.value:<8} {user.email}  (password: {settings.DEMO_PASSWORD})")
        return 0
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        return 1
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the demo database")
    parser.add_argument("--reset", action="store_true", help="Delete every record before seeding")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(reset=args.reset)))
