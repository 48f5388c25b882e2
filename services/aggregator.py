from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from schemas.availability import AvailableSlot, ProviderSlot


def aggregate_slots(
    per_provider_slots: Iterable[Iterable[ProviderSlot]],
    query_date: Optional[date] = None,
    now: Optional[datetime] = None
) -> List[AvailableSlot]:
    """
    Merge provider slot sequences into one view keyed by slot label.

    A label is available when any provider has it free; remaining_spots
    counts those providers. When query_date is today (per ``now``), slots
    that do not start strictly after the current time are dropped.
    """
    merged: Dict[str, AvailableSlot] = {}
    for slots in per_provider_slots:
        for slot in slots:
            entry = merged.get(slot.label)
            if entry is None:
                entry = AvailableSlot(
                    time_slot=slot.label,
                    start_minute=slot.start_minute,
                    price=slot.price,
                    is_available=False,
                    remaining_spots=0
                )
                merged[slot.label] = entry
            if slot.is_available:
                entry.is_available = True
                entry.remaining_spots += 1

    result = sorted(merged.values(), key=lambda s: s.start_minute)

    if query_date is not None and now is not None and query_date == now.date():
        current_minute = now.hour * 60 + now.minute
        result = [s for s in result if s.start_minute > current_minute]

    return result
