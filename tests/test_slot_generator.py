import pytest

from schemas.booking import SlotRange
from schemas.service import PricingWindow
from schemas.user import WorkingHours
from services.errors import InvalidInputError
from services.slot_generator import busy_intervals_from_bookings, generate_slots

BATHROOM_PRICING = [PricingWindow(start_time="09:00", end_time="11:00", price=400)]
ALL_DAY = [PricingWindow(start_time="00:00", end_time="23:59", price=300)]


def test_single_window_yields_single_priced_slot():
    slots = generate_slots(WorkingHours(start="08:00", end="20:00"), 120, [], BATHROOM_PRICING)
    assert len(slots) == 1
    slot = slots[0]
    assert slot.label == "09:00 am - 11:00 am"
    assert slot.price == 400
    assert slot.is_available is True


def test_steps_every_thirty_minutes_until_end_of_day():
    slots = generate_slots(WorkingHours(start="08:00", end="10:00"), 60, [], ALL_DAY)
    assert [s.label for s in slots] == [
        "08:00 am - 09:00 am",
        "08:30 am - 09:30 am",
        "09:00 am - 10:00 am",
    ]


def test_busy_interval_marks_overlapping_slots_unavailable():
    busy = [SlotRange(start_minute=540, end_minute=600)]  # 09:00-10:00
    slots = generate_slots(WorkingHours(start="08:00", end="11:00"), 60, busy, ALL_DAY)
    availability = {s.label: s.is_available for s in slots}
    assert availability["08:00 am - 09:00 am"] is True
    assert availability["08:30 am - 09:30 am"] is False
    assert availability["09:00 am - 10:00 am"] is False
    assert availability["09:30 am - 10:30 am"] is False
    assert availability["10:00 am - 11:00 am"] is True


def test_available_slots_never_overlap_busy_intervals():
    busy = [SlotRange(start_minute=600, end_minute=720), SlotRange(start_minute=900, end_minute=960)]
    slots = generate_slots(WorkingHours(start="08:00", end="20:00"), 90, busy, ALL_DAY)
    for slot in slots:
        if slot.is_available:
            candidate = SlotRange(start_minute=slot.start_minute, end_minute=slot.end_minute)
            assert not any(candidate.overlaps(b) for b in busy)


def test_iteration_cap_bounds_output():
    slots = generate_slots(WorkingHours(start="00:00", end="23:59"), 30, [], ALL_DAY)
    assert len(slots) <= 100
    assert slots[-1].end_minute <= 23 * 60 + 59


def test_malformed_working_hours_raise():
    with pytest.raises(InvalidInputError):
        generate_slots(WorkingHours(start="eight", end="20:00"), 60, [], ALL_DAY)


def test_inverted_working_hours_yield_nothing():
    assert generate_slots(WorkingHours(start="20:00", end="08:00"), 60, [], ALL_DAY) == []


def test_busy_intervals_prefer_structured_slot():
    bookings = [
        {"booking_id": "a", "slot": {"start_minute": 540, "end_minute": 660}, "time_slot": "garbage"},
        {"booking_id": "b", "time_slot": "03:00 PM - 05:00 PM"},
        {"booking_id": "c", "time_slot": "whenever"},
    ]
    intervals = busy_intervals_from_bookings(bookings)
    assert [(i.start_minute, i.end_minute) for i in intervals] == [(540, 660), (900, 1020)]
