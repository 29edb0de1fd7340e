"""
Database initialization script

Creates indexes and seeds the first superadmin:
    python scripts/init_db.py

The superadmin is taken from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD
(and optionally SEED_ADMIN_NAME, SEED_ADMIN_PHONE) and is only created
when no user with that email exists.
"""

import asyncio
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.core.security import hash_password
from app.db.indexes import create_indexes
from app.db.mongo import close_mongo_connection, connect_to_mongo
from app.models.user import Role, new_user_document
from utils import constants as c
from utils.validation_utils import exact_name_regex

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def seed_superadmin(db):
    email = os.getenv("SEED_ADMIN_EMAIL")
    password = os.getenv("SEED_ADMIN_PASSWORD")
    if not email or not password:
        logger.info("⏭️  SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD not set, skipping superadmin seed")
        return

    if await db[c.USERS].find_one({"email": exact_name_regex(email)}, {"_id": 1}):
        logger.info(f"ℹ️  User {email} already exists")
        return

    doc = new_user_document(
        {
            "name": os.getenv("SEED_ADMIN_NAME", "Super Admin"),
            "email": email,
            "role": Role.SUPERADMIN.value,
            "phone": os.getenv("SEED_ADMIN_PHONE", "0000000000"),
            "address": os.getenv("SEED_ADMIN_ADDRESS", "Head office"),
        },
        hash_password(password),
        None,
    )
    await db[c.USERS].insert_one(doc)
    logger.info(f"✅ Superadmin {email} created")


async def main():
    db = await connect_to_mongo()
    try:
        await create_indexes(db)
        logger.info("✅ Indexes created")
        await seed_superadmin(db)
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
