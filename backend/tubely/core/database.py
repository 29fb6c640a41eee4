"""
MongoDB access for Tubely.

One Motor client per process, opened by the FastAPI lifespan hook through
init_db() and reached from request handlers through get_db_client(). Video
records live in a single collection keyed by their UUID string.
"""

import asyncio
import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from tubely.config import Settings, get_settings


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"

SERVER_SELECTION_TIMEOUT_MS = 5000
INITIAL_RETRY_DELAY_SECONDS = 1.0


class DatabaseClient:
    """
    Owns the Motor client and hands out the videos collection.

    Example usage:
        ```python
        db = DatabaseClient(settings)
        if await db.connect():
            videos = db.get_videos_collection()
        await db.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    async def connect(self, max_retries: int = 3) -> bool:
        """
        Open the connection and confirm it with a ping.

        Connection failures are retried with a doubling delay.

        Returns:
            bool: False if every attempt failed
        """
        delay = INITIAL_RETRY_DELAY_SECONDS
        db_name = self.settings.mongodb_db_name

        for attempt in range(1, max_retries + 1):
            client = AsyncIOMotorClient(
                self.settings.mongodb_uri,
                minPoolSize=self.settings.mongodb_min_pool_size,
                maxPoolSize=self.settings.mongodb_max_pool_size,
                serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
                tz_aware=True,
            )
            try:
                await client.admin.command("ping")
            except (ServerSelectionTimeoutError, ConnectionFailure):
                client.close()
                logger.warning(
                    "MongoDB not reachable",
                    extra={"attempt": attempt, "max_retries": max_retries, "database": db_name},
                    exc_info=True,
                )
                if attempt < max_retries:
                    await asyncio.sleep(delay)
                    delay *= 2
                continue

            self._client = client
            self._database = client[db_name]
            logger.info("Connected to MongoDB", extra={"database": db_name, "attempt": attempt})
            return True

        logger.error(
            "Giving up on MongoDB connection",
            extra={"database": db_name, "max_retries": max_retries},
        )
        return False

    async def close(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._database = None
        logger.info("MongoDB connection closed")

    async def ping(self) -> bool:
        """Return True if the server answers a ping."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Raises:
            RuntimeError: If connect() has not succeeded
        """
        if self._database is None:
            raise RuntimeError("MongoDB is not connected")
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        return self.get_database()[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Index video records by owner, and by owner and recency for listings."""
        videos = self.get_videos_collection()
        await videos.create_index([("user_id", ASCENDING)])
        await videos.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        logger.info("Ensured indexes", extra={"collection": VIDEOS_COLLECTION})


class _DatabaseClientContainer:
    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Connect the process-wide client and ensure indexes.

    Raises:
        RuntimeError: If MongoDB cannot be reached
    """
    if _container.client is not None:
        return _container.client

    client = DatabaseClient(settings or get_settings())
    if not await client.connect():
        raise RuntimeError("Could not connect to MongoDB; check MONGODB_URI")

    await client.create_indexes()
    _container.client = client
    return client


async def close_db() -> None:
    if _container.client is not None:
        await _container.client.close()
        _container.client = None


def get_db_client() -> DatabaseClient:
    """
    Return the process-wide client.

    Raises:
        RuntimeError: If init_db() has not run
    """
    if _container.client is None:
        raise RuntimeError("Database client not initialized; init_db() runs at startup")
    return _container.client
