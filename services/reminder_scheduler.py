from datetime import datetime, timedelta, timezone
from typing import Optional
import asyncio
import logging

from config.settings import REMINDER_INTERVAL_SECONDS, REMINDER_LEAD_MINUTES
from scripts.time_parse import parse_slot_label

logger = logging.getLogger(__name__)


def minutes_remaining(booking: dict, now: datetime) -> Optional[int]:
    started_at = booking.get("started_at")
    slot = booking.get("slot")
    if not slot:
        parsed = parse_slot_label(booking.get("time_slot"))
        slot = {"start_minute": parsed[0], "end_minute": parsed[1]} if parsed else None
    if not started_at or not slot:
        return None
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    duration = slot["end_minute"] - slot["start_minute"]
    end_time = started_at + timedelta(minutes=duration)
    return int((end_time - now).total_seconds() // 60)


async def send_ending_soon_reminders(service, now: Optional[datetime] = None) -> int:
    """Notify both parties of in-progress bookings that end in REMINDER_LEAD_MINUTES."""
    now = now or datetime.now(timezone.utc)
    sent = 0
    for booking in await service.bookings.in_progress_pending_reminder():
        remaining = minutes_remaining(booking, now)
        if remaining is None or remaining > REMINDER_LEAD_MINUTES or remaining < 0:
            continue
        if not await service.bookings.mark_reminder_sent(booking["booking_id"]):
            continue

        customer = await service.users.get_user(booking["customer_id"]) or {}
        provider = await service.users.get_user(booking["provider_id"]) if booking.get("provider_id") else None
        provider = provider or {}
        service.notifier.notify(
            customer.get("push_token"),
            "Service Ending Soon",
            f"Your service with {provider.get('name') or 'the provider'} will end in {REMINDER_LEAD_MINUTES} minutes.",
            user_id=customer.get("user_id")
        )
        service.notifier.notify(
            provider.get("push_token"),
            "Service Ending Soon",
            f"Your service for {customer.get('name') or 'the customer'} will end in {REMINDER_LEAD_MINUTES} minutes.",
            user_id=provider.get("user_id")
        )
        sent += 1
    return sent


async def run_reminder_loop(service_factory, interval: float = REMINDER_INTERVAL_SECONDS) -> None:
    while True:
        try:
            sent = await send_ending_soon_reminders(service_factory())
            if sent:
                logger.info(f"Sent {sent} ending-soon reminder(s)")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in reminder scheduler: {str(e)}", exc_info=True)
        await asyncio.sleep(interval)
