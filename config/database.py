from motor.motor_asyncio import AsyncIOMotorClient
import os
from typing import AsyncGenerator
import logging
import asyncio
from pymongo import ASCENDING, GEOSPHERE
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from config.settings import ACTIVE_STATUSES, DATABASE_NAME, configure_logging

configure_logging()
logger = logging.getLogger('database')


class Database:
    client = None
    db = None
    MAX_RETRIES = 3
    RETRY_DELAY = 1  # seconds

    @classmethod
    async def connect_db(cls):
        """Create database connection with retries."""
        retries = 0
        last_error = None

        while retries < cls.MAX_RETRIES:
            try:
                mongodb_url = os.getenv('MONGODB_URL')
                if not mongodb_url:
                    raise ValueError("MONGODB_URL environment variable is not set")

                logger.info(f"Attempting to connect to MongoDB (Attempt {retries + 1}/{cls.MAX_RETRIES})")

                cls.client = AsyncIOMotorClient(
                    mongodb_url,
                    serverSelectionTimeoutMS=5000,
                    connectTimeoutMS=10000,
                    socketTimeoutMS=10000,
                    maxPoolSize=50,
                    retryWrites=True,
                    retryReads=True,
                    tz_aware=True
                )
                cls.db = cls.client[DATABASE_NAME]

                # Test the connection
                await cls.db.command('ping')
                logger.info(f"Successfully connected to MongoDB database: {DATABASE_NAME}")

                collections = await cls.db.list_collection_names()
                required_collections = ['users', 'services', 'bookings', 'notifications']
                for collection in required_collections:
                    if collection not in collections:
                        await cls.db.create_collection(collection)
                        logger.info(f"Created collection: {collection}")

                await cls.ensure_indexes()
                return

            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                last_error = e
                retries += 1
                if retries < cls.MAX_RETRIES:
                    logger.warning(f"Failed to connect to MongoDB (Attempt {retries}/{cls.MAX_RETRIES}). Retrying in {cls.RETRY_DELAY} seconds...")
                    await asyncio.sleep(cls.RETRY_DELAY)
                continue
            except Exception as e:
                logger.error(f"Unexpected error connecting to MongoDB: {str(e)}")
                raise

        logger.error(f"Failed to connect to MongoDB after {cls.MAX_RETRIES} attempts")
        raise last_error

    @classmethod
    async def ensure_indexes(cls):
        """Geo index for provider search and the active-booking uniqueness constraint."""
        await cls.db.users.create_index([("location", GEOSPHERE)])
        await cls.db.users.create_index("user_id", unique=True)
        await cls.db.services.create_index("service_id", unique=True)
        await cls.db.bookings.create_index("booking_id", unique=True)
        await cls.db.bookings.create_index(
            [
                ("provider_id", ASCENDING),
                ("date", ASCENDING),
                ("slot.start_minute", ASCENDING),
                ("slot.end_minute", ASCENDING),
            ],
            name="uniq_active_provider_slot",
            unique=True,
            partialFilterExpression={
                "status": {"$in": ACTIVE_STATUSES},
                "provider_id": {"$type": "string"},
            },
        )
        await cls.db.bookings.create_index([("date", ASCENDING), ("status", ASCENDING)])
        logger.info("MongoDB indexes ensured")

    @classmethod
    async def close_db(cls):
        """Close database connection."""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("MongoDB connection closed.")

    def __init__(self):
        if self.db is None:
            raise Exception("Database not initialized. Call connect_db() first.")

        self.users = self.db.users
        self.services = self.db.services
        self.bookings = self.db.bookings
        self.notifications = self.db.notifications

    @classmethod
    def get_db(cls) -> 'Database':
        """Get database instance."""
        if cls.db is None:
            raise Exception("Database not initialized. Call connect_db() first.")
        return cls()


async def get_db() -> AsyncGenerator[Database, None]:
    """FastAPI dependency for getting database instance."""
    if Database.db is None:
        await Database.connect_db()

    db = Database()
    try:
        yield db
    finally:
        pass  # Connection is managed by the class methods
