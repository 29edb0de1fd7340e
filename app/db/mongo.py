"""
app/db/mongo.py

Purpose: Motor client for the OrderDesk database

- Opened once in the app lifespan (and by scripts/init_db.py)
- Routers receive the database through the get_database dependency
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_client: Optional[AsyncIOMotorClient] = None


async def connect_to_mongo() -> AsyncIOMotorDatabase:
    """
    Opens the client and pings the server so startup fails fast on a bad URL.

    Raises:
        ConnectionError: The server did not answer the ping
    """
    global _client

    if _client is None:
        _client = AsyncIOMotorClient(settings.MONGODB_URL, serverSelectionTimeoutMS=5000)
        try:
            await _client.admin.command("ping")
        except PyMongoError as e:
            _client.close()
            _client = None
            logger.critical(f"MongoDB unreachable at startup: {e}")
            raise ConnectionError("Could not establish MongoDB connection") from e
        logger.info(f"Connected to MongoDB database '{settings.MONGODB_DB_NAME}'")

    return _client[settings.MONGODB_DB_NAME]


async def close_mongo_connection():
    global _client
    if _client is not None:
        _client.close()
        _client = None


async def check_database_health() -> bool:
    """Pings the server; False when the client is closed or the ping fails."""
    if _client is None:
        return False
    try:
        await _client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def get_database() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency for the shared database handle.

    Tests replace it through ``app.dependency_overrides``.
    """
    if _client is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo() during startup.")
    return _client[settings.MONGODB_DB_NAME]
