import asyncio
import logging

from config.database import Database

logger = logging.getLogger(__name__)


async def verify_all_providers():
    """Mark every registered provider as verified (development bootstrap)."""
    await Database.connect_db()
    try:
        db = Database()
        result = await db.users.update_many(
            {"role": "provider", "is_verified": {"$ne": True}},
            {"$set": {"is_verified": True}}
        )
        logger.info(f"Verified {result.modified_count} provider(s)")
    finally:
        await Database.close_db()


if __name__ == "__main__":
    asyncio.run(verify_all_providers())
