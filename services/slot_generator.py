"""
Per-provider slot generation.

Walks a provider's working day in fixed steps, prices every candidate
slot against the service's pricing windows and marks it unavailable when
it overlaps one of the provider's active bookings.
"""

from typing import Iterable, List, Sequence
import logging

from config.settings import MAX_SLOT_ITERATIONS, SLOT_STEP_MINUTES
from schemas.availability import ProviderSlot
from schemas.booking import SlotRange
from schemas.service import PricingWindow
from schemas.user import WorkingHours
from scripts.time_parse import parse_slot_label, parse_time_str, render_slot_label
from services.errors import InvalidInputError
from services.pricing import price_for

logger = logging.getLogger(__name__)


def busy_intervals_from_bookings(bookings: Iterable[dict]) -> List[SlotRange]:
    """
    Structured busy intervals of a provider's active bookings.

    Uses the stored ``slot`` when present and falls back to parsing the
    ``time_slot`` label. Unparsable labels impose no constraint.
    """
    intervals = []
    for booking in bookings:
        slot = booking.get("slot")
        if slot:
            intervals.append(SlotRange(**slot))
            continue
        parsed = parse_slot_label(booking.get("time_slot"))
        if parsed is None:
            logger.warning(
                f"Ignoring unparsable time slot {booking.get('time_slot')!r} "
                f"on booking {booking.get('booking_id')}"
            )
            continue
        intervals.append(SlotRange(start_minute=parsed[0], end_minute=parsed[1]))
    return intervals


def generate_slots(
    working_hours: WorkingHours,
    duration: int,
    busy_intervals: Sequence[SlotRange],
    pricing_windows: Sequence[PricingWindow]
) -> List[ProviderSlot]:
    """
    Candidate slots for one provider on one day, ordered by start.

    Raises InvalidInputError when the working hours cannot be parsed.
    """
    day_start = parse_time_str(working_hours.start)
    day_end = parse_time_str(working_hours.end)
    if duration <= 0:
        raise InvalidInputError("Duration must be a positive number of minutes")

    slots = []
    current = day_start
    for _ in range(MAX_SLOT_ITERATIONS):
        candidate = SlotRange.model_construct(start_minute=current, end_minute=current + duration)
        if candidate.end_minute > day_end:
            break

        price = price_for(pricing_windows, candidate.start_minute, candidate.end_minute)
        if price is not None:
            is_available = not any(candidate.overlaps(busy) for busy in busy_intervals)
            slots.append(ProviderSlot(
                label=render_slot_label(candidate.start_minute, candidate.end_minute),
                start_minute=candidate.start_minute,
                end_minute=candidate.end_minute,
                price=price,
                is_available=is_available
            ))

        current += SLOT_STEP_MINUTES

    return slots
