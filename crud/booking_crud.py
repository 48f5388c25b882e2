from typing import Iterable, List, Optional, Set
from datetime import datetime
import logging

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from config.database import Database
from config.settings import ACTIVE_STATUSES, BUSY_STATUSES
from schemas.booking import Booking, SlotRange
from services.errors import ConflictError, NotFoundError
from services.slot_generator import busy_intervals_from_bookings

logger = logging.getLogger(__name__)


class BookingRepository:
    def __init__(self, db: Database):
        self.db = db

    async def insert_booking(self, booking: Booking) -> Booking:
        """Insert a booking, relying on the partial unique index for active provider slots."""
        try:
            await self.db.bookings.insert_one(booking.model_dump())
        except DuplicateKeyError:
            raise ConflictError(
                f"Provider {booking.provider_id} already has an active booking at "
                f"{booking.time_slot} on {booking.date}"
            )
        return booking

    async def get_booking(self, booking_id: str) -> dict:
        booking = await self.db.bookings.find_one({"booking_id": booking_id})
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def active_on_date(self, provider_ids: Iterable[str], date: str) -> List[dict]:
        return await self.db.bookings.find({
            "provider_id": {"$in": list(provider_ids)},
            "date": date,
            "status": {"$in": ACTIVE_STATUSES}
        }).to_list(length=None)

    async def busy_provider_ids(self, date: str, slot: SlotRange) -> Set[str]:
        """Providers holding a confirmed or in-progress booking overlapping the slot."""
        bookings = await self.db.bookings.find({
            "date": date,
            "status": {"$in": BUSY_STATUSES},
            "provider_id": {"$ne": None}
        }).to_list(length=None)
        busy = set()
        for booking in bookings:
            for interval in busy_intervals_from_bookings([booking]):
                if interval.overlaps(slot):
                    busy.add(booking["provider_id"])
        return busy

    async def transition(
        self,
        booking_id: str,
        from_statuses: List[str],
        fields: dict,
        extra_filter: Optional[dict] = None
    ) -> Optional[dict]:
        """
        Apply ``fields`` only if the booking is still in one of from_statuses.

        Returns the updated document, or None when the precondition no
        longer holds.
        """
        query = {"booking_id": booking_id, "status": {"$in": from_statuses}}
        if extra_filter:
            query.update(extra_filter)
        fields = dict(fields, updated_at=datetime.utcnow())
        try:
            return await self.db.bookings.find_one_and_update(
                query,
                {"$set": fields},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError("Provider already has an active booking in this time slot")

    async def list_bookings(
        self,
        customer_id: Optional[str] = None,
        provider_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
        newest_first: bool = False
    ) -> List[Booking]:
        query = {}
        if customer_id is not None:
            query["customer_id"] = customer_id
        if provider_id is not None:
            query["provider_id"] = provider_id
        if statuses is not None:
            query["status"] = {"$in": statuses}

        cursor = self.db.bookings.find(query)
        if newest_first:
            cursor = cursor.sort("created_at", DESCENDING)
        else:
            cursor = cursor.sort([("date", ASCENDING), ("slot.start_minute", ASCENDING)])
        bookings = await cursor.to_list(length=None)
        return [Booking(**booking) for booking in bookings]

    async def in_progress_pending_reminder(self) -> List[dict]:
        return await self.db.bookings.find({
            "status": "in_progress",
            "started_at": {"$ne": None},
            "reminder_sent": {"$ne": True}
        }).to_list(length=None)

    async def mark_reminder_sent(self, booking_id: str) -> bool:
        result = await self.db.bookings.update_one(
            {"booking_id": booking_id, "reminder_sent": {"$ne": True}},
            {"$set": {"reminder_sent": True}}
        )
        return bool(result.modified_count)
