from typing import Iterable, List, Optional
import logging
import math

from config.settings import SEARCH_RADIUS_METERS
from schemas.user import GeoPoint

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6378100.0  # same sphere as MongoDB 2dsphere


def normalize_category(category: Optional[str]) -> str:
    return (category or "").strip().casefold()


def category_matches(provider_category: Optional[str], category: str) -> bool:
    """Exact equality after trimming, ignoring case. Never a substring match."""
    wanted = normalize_category(category)
    return bool(wanted) and normalize_category(provider_category) == wanted


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


class GeoIndex:
    """Eligible provider lookup over the users collection's 2dsphere index."""

    def __init__(self, users):
        self.users = users

    async def find_eligible(
        self,
        category: str,
        point: GeoPoint,
        radius_meters: int = SEARCH_RADIUS_METERS,
        exclude_ids: Optional[Iterable[str]] = None
    ) -> List[dict]:
        """
        Verified providers of ``category`` within ``radius_meters`` of ``point``,
        nearest first, skipping ``exclude_ids``. Empty list when nothing matches.
        """
        excluded = set(exclude_ids or ())
        candidates = await self.users.find_nearby_providers(
            point,
            category=category,
            exclude_ids=excluded,
            radius_meters=radius_meters
        )

        eligible = []
        for provider in candidates:
            if provider.get("role") != "provider" or not provider.get("is_verified"):
                continue
            if provider.get("user_id") in excluded:
                continue
            if not category_matches(provider.get("service_category"), category):
                continue
            location = GeoPoint.from_geojson(provider.get("location"))
            if location is None or distance_meters(point, location) > radius_meters:
                continue
            eligible.append(provider)

        logger.debug(f"{len(eligible)} eligible provider(s) for {category!r} near ({point.lat}, {point.lng})")
        return eligible
