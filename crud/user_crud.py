from typing import List, Optional, Set
from datetime import datetime
import logging
import re

from pymongo import ReturnDocument

from config.database import Database
from config.settings import GIFT_DESCRIPTION, POINTS_PER_GIFT, SEARCH_RADIUS_METERS
from schemas.user import GeoPoint, User, WorkingHours
from scripts.time_parse import parse_time_str
from services.booking_state import convert_points
from services.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def category_pattern(category: str) -> dict:
    """Exact, trimmed, case-insensitive match on service_category."""
    return {"$regex": f"^\\s*{re.escape(category.strip())}\\s*$", "$options": "i"}


class UserRepository:
    def __init__(self, db: Database):
        self.db = db

    async def get_user(self, user_id: str) -> Optional[dict]:
        return await self.db.users.find_one({"user_id": user_id})

    async def get_provider(self, provider_id: str) -> dict:
        provider = await self.db.users.find_one({"user_id": provider_id, "role": "provider"})
        if not provider:
            raise NotFoundError(f"Provider with ID {provider_id} not found")
        return provider

    async def list_providers(self) -> List[User]:
        providers = await self.db.users.find({"role": "provider"}).to_list(length=None)
        return [User(**provider) for provider in providers]

    async def find_nearby_providers(
        self,
        point: GeoPoint,
        category: Optional[str] = None,
        exclude_ids: Optional[Set[str]] = None,
        radius_meters: int = SEARCH_RADIUS_METERS
    ) -> List[dict]:
        """Verified providers within radius, nearest first."""
        query = {
            "role": "provider",
            "is_verified": True,
            "location": {
                "$near": {
                    "$geometry": point.to_geojson(),
                    "$maxDistance": radius_meters
                }
            }
        }
        if category is not None:
            query["service_category"] = category_pattern(category)
        if exclude_ids:
            query["user_id"] = {"$nin": sorted(exclude_ids)}
        return await self.db.users.find(query).to_list(length=None)

    async def nearby_categories(self, point: GeoPoint) -> List[str]:
        providers = await self.find_nearby_providers(point)
        categories = []
        for provider in providers:
            category = (provider.get("service_category") or "").strip()
            if category and category not in categories:
                categories.append(category)
        return categories

    async def verify_provider(self, provider_id: str) -> User:
        provider = await self.db.users.find_one_and_update(
            {"user_id": provider_id, "role": "provider"},
            {"$set": {"is_verified": True, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER
        )
        if not provider:
            raise NotFoundError("Provider not found")
        logger.info(f"Provider {provider_id} verified")
        return User(**provider)

    async def _update_user(self, user_id: str, fields: dict) -> User:
        fields["updated_at"] = datetime.utcnow()
        user = await self.db.users.find_one_and_update(
            {"user_id": user_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return User(**user)

    async def update_location(self, user_id: str, point: GeoPoint) -> User:
        return await self._update_user(user_id, {"location": point.to_geojson()})

    async def update_push_token(self, user_id: str, push_token: str) -> User:
        return await self._update_user(user_id, {"push_token": push_token})

    async def update_working_hours(self, user_id: str, hours: WorkingHours) -> User:
        if parse_time_str(hours.start) >= parse_time_str(hours.end):
            raise InvalidInputError("Working hours start must be before end")
        return await self._update_user(user_id, {"working_hours": hours.model_dump()})

    async def add_earnings(self, provider_id: str, amount: float) -> None:
        await self.db.users.update_one(
            {"user_id": provider_id},
            {"$inc": {"earnings": amount}, "$set": {"updated_at": datetime.utcnow()}}
        )

    async def award_points(self, provider_id: str, points: int) -> int:
        """
        Add loyalty points and convert every full POINTS_PER_GIFT into a gift.

        Returns the number of gifts granted by this call.
        """
        provider = await self.db.users.find_one_and_update(
            {"user_id": provider_id},
            {"$inc": {"points": points}},
            return_document=ReturnDocument.AFTER
        )
        if not provider:
            raise NotFoundError(f"Provider with ID {provider_id} not found")

        _, conversions = convert_points(provider.get("points", 0))
        if conversions <= 0:
            return 0

        cost = conversions * POINTS_PER_GIFT
        result = await self.db.users.update_one(
            {"user_id": provider_id, "points": {"$gte": cost}},
            {
                "$inc": {"points": -cost},
                "$push": {"gifts": {"$each": [GIFT_DESCRIPTION] * conversions}},
                "$set": {"updated_at": datetime.utcnow()}
            }
        )
        if not result.modified_count:
            # another feedback event converted the same points first
            return 0
        logger.info(f"Provider {provider_id} earned {conversions} gift(s)")
        return conversions
