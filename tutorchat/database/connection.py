import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure

from tutorchat.config import get_settings
from tutorchat.errors import UnavailableError

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None


async def connect_to_mongo() -> None:
    global _client
    settings = get_settings()
    _client = AsyncIOMotorClient(settings.mongo_url, serverSelectionTimeoutMS=5000)
    logger.info("Connected to MongoDB database %s", settings.mongo_db)


async def close_mongo_connection() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB connection closed")


def get_database() -> AsyncIOMotorDatabase:
    if _client is None:
        raise UnavailableError("Database connection has not been initialised")
    return _client[get_settings().mongo_db]


async def mongo_db_dependency() -> AsyncIOMotorDatabase:
    return get_database()


@contextmanager
def persistence_guard(operation: str) -> Iterator[None]:
    """Surface lost connectivity to MongoDB as ``UnavailableError``."""
    try:
        yield
    except ConnectionFailure as exc:
        logger.error("MongoDB unreachable during %s: %s", operation, exc)
        raise UnavailableError(f"Persistence unavailable during {operation}") from exc
