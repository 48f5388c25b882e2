from typing import Iterable, Optional, Tuple
import logging

from config.settings import ASSIGNMENT_MAX_ATTEMPTS, SEARCH_RADIUS_METERS
from schemas.booking import Booking, BookingCreate, SlotRange, generate_booking_id
from schemas.service import Service
from schemas.user import GeoPoint
from scripts.time_parse import parse_booking_date, parse_slot_label, render_slot_label
from services.errors import ConflictError, InvalidInputError
from services.pricing import build_pricing, price_for

logger = logging.getLogger(__name__)

PENDING_MESSAGE = "No provider available at this time. Booking is pending."


def parse_requested_slot(time_slot: str) -> SlotRange:
    parsed = parse_slot_label(time_slot)
    if parsed is None:
        raise InvalidInputError(f"Invalid time slot: {time_slot!r}")
    return SlotRange(start_minute=parsed[0], end_minute=parsed[1])


def confirmation_message(provider: Optional[dict]) -> str:
    if provider is None:
        return PENDING_MESSAGE
    return f"Booking confirmed with provider {provider.get('name')}"


class Assigner:
    """Picks a free provider for a new booking and creates it atomically."""

    def __init__(self, geo_index, bookings, max_attempts: int = ASSIGNMENT_MAX_ATTEMPTS):
        self.geo_index = geo_index
        self.bookings = bookings
        self.max_attempts = max_attempts

    async def assign(
        self,
        service: Service,
        date: str,
        slot: SlotRange,
        point: GeoPoint,
        exclude_ids: Iterable[str] = ()
    ) -> Optional[dict]:
        """First eligible provider not already busy over ``slot`` on ``date``."""
        excluded = await self.bookings.busy_provider_ids(date, slot)
        excluded.update(exclude_ids)
        eligible = await self.geo_index.find_eligible(service.name, point, SEARCH_RADIUS_METERS, excluded)
        return eligible[0] if eligible else None

    async def create_booking(
        self,
        customer_id: str,
        service: Service,
        request: BookingCreate
    ) -> Tuple[Booking, Optional[dict]]:
        # canonical YYYY-MM-DD, the only form stored and queried
        booking_date = parse_booking_date(request.date).isoformat()
        slot = parse_requested_slot(request.time_slot)

        base_price = price_for(service.pricing, slot.start_minute, slot.end_minute)
        if base_price is None:
            raise InvalidInputError("Invalid time slot selected")

        fields = dict(
            customer_id=customer_id,
            service_id=service.service_id,
            address=request.address,
            city=request.city,
            date=booking_date,
            time_slot=render_slot_label(slot.start_minute, slot.end_minute),
            slot=slot,
            pricing=build_pricing(base_price),
            location=request.location
        )

        conflicted = set()
        for attempt in range(1, self.max_attempts + 1):
            provider = await self.assign(service, booking_date, slot, request.location, conflicted)
            if provider is None:
                break
            booking = Booking(
                booking_id=generate_booking_id(),
                provider_id=provider["user_id"],
                status="confirmed",
                **fields
            )
            try:
                booking = await self.bookings.insert_booking(booking)
            except ConflictError:
                logger.warning(
                    f"Provider {provider['user_id']} became unavailable for {booking.time_slot} "
                    f"on {booking_date} (attempt {attempt}/{self.max_attempts})"
                )
                conflicted.add(provider["user_id"])
                continue
            logger.info(f"Booking {booking.booking_id} confirmed with provider {provider['user_id']}")
            return booking, provider

        booking = Booking(booking_id=generate_booking_id(), provider_id=None, status="pending", **fields)
        booking = await self.bookings.insert_booking(booking)
        logger.info(f"Booking {booking.booking_id} created unassigned (pending)")
        return booking, None
