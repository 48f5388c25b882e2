"""
Booking lifecycle.

    pending -> confirmed -> in_progress -> completed
    pending | confirmed -> cancelled

Every transition is a conditional update on the current status, so a
side effect (earnings, loyalty points) is applied by at most one caller.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple
import logging

from config.settings import POINTS_PER_GIFT
from schemas.booking import Booking, Feedback
from services.errors import ConflictError, UnauthorizedError
from services.geo_index import category_matches

logger = logging.getLogger(__name__)


def loyalty_points(rating: int) -> int:
    if rating >= 4:
        return 10
    if rating >= 3:
        return 5
    return 0


def convert_points(balance: int) -> Tuple[int, int]:
    """Split a point balance into (remaining points, gifts earned)."""
    if balance < POINTS_PER_GIFT:
        return balance, 0
    gifts = balance // POINTS_PER_GIFT
    return balance - gifts * POINTS_PER_GIFT, gifts


class BookingStateMachine:
    def __init__(self, bookings, users, services):
        self.bookings = bookings
        self.users = users
        self.services = services

    async def _transition(self, booking: dict, from_statuses, fields: dict, extra_filter: Optional[dict] = None) -> Booking:
        updated = await self.bookings.transition(booking["booking_id"], from_statuses, fields, extra_filter)
        if updated is None:
            raise ConflictError(f"Booking {booking['booking_id']} was modified concurrently, please retry")
        return Booking(**updated)

    @staticmethod
    def _require_status(booking: dict, *statuses: str) -> None:
        if booking["status"] not in statuses:
            raise ConflictError(
                f"Booking is {booking['status']}, expected {' or '.join(statuses)}"
            )

    @staticmethod
    def _require_provider(booking: dict, actor_id: str) -> None:
        if not booking.get("provider_id") or booking["provider_id"] != actor_id:
            raise UnauthorizedError("Not authorized")

    async def manual_assign(self, booking_id: str, provider_id: str) -> Tuple[Booking, dict]:
        """Administrative assignment of a pending booking."""
        booking = await self.bookings.get_booking(booking_id)
        self._require_status(booking, "pending")

        provider = await self.users.get_provider(provider_id)
        service = await self.services.get_service(booking["service_id"])
        if not category_matches(provider.get("service_category"), service.name):
            raise ConflictError(
                f"Provider category {provider.get('service_category')!r} does not match service {service.name!r}"
            )

        updated = await self._transition(booking, ["pending"], {"provider_id": provider_id, "status": "confirmed"})
        logger.info(f"Booking {booking_id} manually assigned to provider {provider_id}")
        return updated, provider

    async def start(self, booking_id: str, actor_id: str) -> Booking:
        booking = await self.bookings.get_booking(booking_id)
        self._require_provider(booking, actor_id)
        self._require_status(booking, "confirmed")

        updated = await self._transition(
            booking, ["confirmed"],
            {"status": "in_progress", "started_at": datetime.now(timezone.utc)},
            {"provider_id": actor_id}
        )
        logger.info(f"Booking {booking_id} started by provider {actor_id}")
        return updated

    async def complete(self, booking_id: str, actor_id: str) -> Booking:
        """Finish an in-progress booking and credit the provider's earnings once."""
        booking = await self.bookings.get_booking(booking_id)
        self._require_provider(booking, actor_id)
        self._require_status(booking, "in_progress")

        updated = await self._transition(
            booking, ["in_progress"],
            {"status": "completed", "completed_at": datetime.now(timezone.utc)},
            {"provider_id": actor_id}
        )
        await self.users.add_earnings(actor_id, updated.pricing.total)
        logger.info(f"Booking {booking_id} completed, provider {actor_id} earned {updated.pricing.total}")
        return updated

    # The provider app ends a running session with "stop"
    stop = complete

    async def cancel(self, booking_id: str, actor_id: str, actor_role: str) -> Booking:
        booking = await self.bookings.get_booking(booking_id)
        is_owner = booking["customer_id"] == actor_id or booking.get("provider_id") == actor_id
        if actor_role != "admin" and not is_owner:
            raise UnauthorizedError("Not authorized")
        self._require_status(booking, "pending", "confirmed")

        updated = await self._transition(booking, ["pending", "confirmed"], {"status": "cancelled"})
        logger.info(f"Booking {booking_id} cancelled by {actor_role} {actor_id}")
        return updated

    async def leave_feedback(self, booking_id: str, customer_id: str, feedback: Feedback) -> Tuple[Booking, int]:
        """
        Record the customer's single feedback on a completed booking.

        Returns the booking and the number of gifts the provider earned.
        """
        booking = await self.bookings.get_booking(booking_id)
        if booking["customer_id"] != customer_id:
            raise UnauthorizedError("Not authorized")
        if booking["status"] != "completed":
            raise ConflictError("Can only leave feedback for completed bookings")
        if booking.get("feedback"):
            raise ConflictError("Feedback already submitted for this booking")

        updated = await self._transition(
            booking, ["completed"],
            {"feedback": feedback.model_dump()},
            {"feedback": None}
        )

        gifts = 0
        points = loyalty_points(feedback.rating)
        if updated.provider_id and points:
            gifts = await self.users.award_points(updated.provider_id, points)
        logger.info(f"Feedback on booking {booking_id}: rating {feedback.rating}, {points} point(s) awarded")
        return updated, gifts
