from datetime import datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo
import logging

from config.settings import ACTIVE_STATUSES, APP_TIMEZONE, CLOSED_STATUSES, SEARCH_RADIUS_METERS
from crud.booking_crud import BookingRepository
from crud.service_crud import ServiceRepository
from crud.user_crud import UserRepository
from schemas.availability import AvailabilityResponse
from schemas.booking import (
    Booking,
    BookingCreate,
    BookingDetails,
    BookingResult,
    Feedback,
    PartySummary,
    ServiceSummary,
)
from schemas.service import Service
from schemas.user import GeoPoint, WorkingHours
from scripts.time_parse import parse_booking_date
from services.aggregator import aggregate_slots
from services.assigner import Assigner, confirmation_message
from services.booking_state import BookingStateMachine
from services.errors import InvalidInputError, NotFoundError
from services.geo_index import GeoIndex, category_matches
from services.notification_service import NotificationService
from services.slot_generator import busy_intervals_from_bookings, generate_slots

logger = logging.getLogger(__name__)


def now_local() -> datetime:
    return datetime.now(ZoneInfo(APP_TIMEZONE))


class BookingService:
    """Entry point for availability queries, booking creation and lifecycle actions."""

    def __init__(self, users, services, bookings, notifier):
        self.users = users
        self.services = services
        self.bookings = bookings
        self.notifier = notifier
        self.geo_index = GeoIndex(users)
        self.assigner = Assigner(self.geo_index, bookings)
        self.state = BookingStateMachine(bookings, users, services)

    @classmethod
    def from_db(cls, db) -> 'BookingService':
        return cls(
            users=UserRepository(db),
            services=ServiceRepository(db),
            bookings=BookingRepository(db),
            notifier=NotificationService(db)
        )

    async def _notify_user(self, user_id: Optional[str], title: str, body: str) -> None:
        if not user_id:
            return
        try:
            user = await self.users.get_user(user_id)
            if user:
                self.notifier.notify(user.get("push_token"), title, body, user_id=user_id)
        except Exception as e:
            logger.error(f"Error notifying user {user_id}: {str(e)}")

    def _notify_provider(self, provider: dict, title: str, body: str) -> None:
        try:
            self.notifier.notify(provider.get("push_token"), title, body, user_id=provider["user_id"])
        except Exception as e:
            logger.error(f"Error notifying provider {provider.get('user_id')}: {str(e)}")

    # Catalog

    async def list_services(
        self,
        point: Optional[GeoPoint] = None,
        city: Optional[str] = None,
        include_all: bool = False
    ) -> List[Service]:
        """Enabled services, limited to categories with a verified provider nearby when a point is given."""
        if point is None:
            return await self.services.list_services(include_disabled=include_all, city=city)

        services = await self.services.list_services(include_disabled=include_all)
        categories = await self.users.nearby_categories(point)
        if not categories:
            return services if include_all else []
        return [s for s in services if any(category_matches(c, s.name) for c in categories)]

    # Availability

    async def get_availability(
        self,
        service_id: str,
        date: str,
        point: Optional[GeoPoint],
        duration: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> AvailabilityResponse:
        if point is None:
            raise InvalidInputError("Location (lat, lng) is required")
        query_date = parse_booking_date(date)
        date = query_date.isoformat()
        service = await self.services.get_service(service_id)
        duration = duration or service.base_duration
        if duration <= 0:
            raise InvalidInputError("Duration must be a positive number of minutes")

        providers = await self.geo_index.find_eligible(service.name, point, SEARCH_RADIUS_METERS)
        bookings_by_provider: Dict[str, list] = {}
        if providers:
            active = await self.bookings.active_on_date([p["user_id"] for p in providers], date)
            for booking in active:
                bookings_by_provider.setdefault(booking["provider_id"], []).append(booking)

        per_provider = []
        for provider in providers:
            busy = busy_intervals_from_bookings(bookings_by_provider.get(provider["user_id"], []))
            try:
                hours = WorkingHours(**(provider.get("working_hours") or {}))
                slots = generate_slots(hours, duration, busy, service.pricing)
            except (InvalidInputError, ValueError) as e:
                logger.warning(f"Provider {provider['user_id']} contributes no slots: {str(e)}")
                continue
            per_provider.append(slots)

        slots = aggregate_slots(per_provider, query_date, now or now_local())
        return AvailabilityResponse(service=service.name, date=date, duration=duration, slots=slots)

    # Booking creation

    async def create_booking(self, customer_id: str, request: BookingCreate) -> BookingResult:
        service = await self.services.get_service(request.service_id)
        booking, provider = await self.assigner.create_booking(customer_id, service, request)
        message = confirmation_message(provider)

        await self._notify_user(customer_id, "Booking received", message)
        if provider is not None:
            self._notify_provider(
                provider,
                "New booking assigned",
                f"{service.name} on {booking.date}, {booking.time_slot}"
            )
        return BookingResult(booking=booking, message=message)

    # Lifecycle

    async def manual_assign(self, booking_id: str, provider_id: str) -> BookingResult:
        booking, provider = await self.state.manual_assign(booking_id, provider_id)
        message = confirmation_message(provider)
        await self._notify_user(booking.customer_id, "Booking confirmed", message)
        self._notify_provider(
            provider,
            "New booking assigned",
            f"Booking on {booking.date}, {booking.time_slot}"
        )
        return BookingResult(booking=booking, message=message)

    async def start(self, booking_id: str, provider_id: str) -> BookingResult:
        booking = await self.state.start(booking_id, provider_id)
        await self._notify_user(booking.customer_id, "Service started", "Your provider has started the service.")
        return BookingResult(booking=booking, message="Service started")

    async def complete(self, booking_id: str, provider_id: str) -> BookingResult:
        booking = await self.state.complete(booking_id, provider_id)
        await self._notify_user(
            booking.customer_id,
            "Service completed",
            "Your service is complete. Tell us how it went!"
        )
        return BookingResult(booking=booking, message="Booking completed and earnings updated")

    async def stop(self, booking_id: str, provider_id: str) -> BookingResult:
        return await self.complete(booking_id, provider_id)

    async def cancel(self, booking_id: str, actor_id: str, actor_role: str) -> BookingResult:
        booking = await self.state.cancel(booking_id, actor_id, actor_role)
        if booking.provider_id and booking.provider_id != actor_id:
            await self._notify_user(booking.provider_id, "Booking cancelled", f"Booking on {booking.date}, {booking.time_slot} was cancelled.")
        return BookingResult(booking=booking, message="Booking cancelled")

    async def leave_feedback(self, booking_id: str, customer_id: str, feedback: Feedback) -> BookingResult:
        booking, gifts = await self.state.leave_feedback(booking_id, customer_id, feedback)
        if gifts:
            await self._notify_user(booking.provider_id, "You earned a reward!", f"{gifts} new gift(s) were added to your account.")
        return BookingResult(booking=booking, message="Feedback saved and points awarded")

    # Listings

    async def _with_details(self, bookings: List[Booking]) -> List[BookingDetails]:
        """Attach service name and customer/provider contact details, one lookup per id."""
        users: Dict[str, Optional[dict]] = {}
        services: Dict[str, Optional[Service]] = {}

        async def party(user_id: Optional[str]) -> Optional[PartySummary]:
            if not user_id:
                return None
            if user_id not in users:
                users[user_id] = await self.users.get_user(user_id)
            user = users[user_id]
            if not user:
                return PartySummary(user_id=user_id)
            return PartySummary(user_id=user_id, name=user.get("name"), phone=user.get("phone"))

        detailed = []
        for booking in bookings:
            if booking.service_id not in services:
                try:
                    services[booking.service_id] = await self.services.get_service(booking.service_id)
                except NotFoundError:
                    logger.warning(f"Booking {booking.booking_id} references missing service {booking.service_id}")
                    services[booking.service_id] = None
            service = services[booking.service_id]
            detailed.append(BookingDetails(
                **booking.model_dump(),
                service=ServiceSummary(service_id=service.service_id, name=service.name) if service else None,
                customer=await party(booking.customer_id),
                provider=await party(booking.provider_id)
            ))
        return detailed

    async def active_bookings(self, actor_id: str, role: str) -> List[BookingDetails]:
        if role == "provider":
            bookings = await self.bookings.list_bookings(provider_id=actor_id, statuses=ACTIVE_STATUSES)
        else:
            bookings = await self.bookings.list_bookings(customer_id=actor_id, statuses=ACTIVE_STATUSES)
        return await self._with_details(bookings)

    async def provider_queue(self, provider_id: str) -> List[BookingDetails]:
        return await self._with_details(await self.bookings.list_bookings(provider_id=provider_id))

    async def history(self, actor_id: str, role: str) -> List[BookingDetails]:
        if role == "provider":
            bookings = await self.bookings.list_bookings(provider_id=actor_id, statuses=CLOSED_STATUSES, newest_first=True)
        else:
            bookings = await self.bookings.list_bookings(customer_id=actor_id, statuses=CLOSED_STATUSES, newest_first=True)
        return await self._with_details(bookings)

    async def all_bookings(self) -> List[BookingDetails]:
        return await self._with_details(await self.bookings.list_bookings(newest_first=True))
