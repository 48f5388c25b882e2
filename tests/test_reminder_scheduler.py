import asyncio
from datetime import datetime, timedelta, timezone

from schemas.booking import BookingCreate
from services.reminder_scheduler import minutes_remaining, send_ending_soon_reminders
from tests.fakes import PUNE

STARTED = datetime(2025, 6, 1, 3, 30)


def run(coro):
    return asyncio.run(coro)


def in_progress(booking_service, bookings):
    request = BookingCreate(service_id="SVBATH", address="12 MG Road", date="2025-06-01",
                            time_slot="09:00 am - 11:00 am", location=PUNE)
    booking = run(booking_service.create_booking("cust1", request)).booking
    run(booking_service.start(booking.booking_id, "prov1"))
    doc = next(d for d in bookings.docs if d["booking_id"] == booking.booking_id)
    doc["started_at"] = STARTED
    return doc


def at(minutes_after_start):
    return STARTED.replace(tzinfo=timezone.utc) + timedelta(minutes=minutes_after_start)


def test_minutes_remaining():
    booking = {"started_at": STARTED, "slot": {"start_minute": 540, "end_minute": 660}}
    assert minutes_remaining(booking, at(0)) == 120
    assert minutes_remaining(booking, at(110)) == 10
    assert minutes_remaining({"started_at": None, "slot": None}, at(0)) is None


def test_reminder_sent_once_near_the_end(booking_service, bookings, notifier):
    doc = in_progress(booking_service, bookings)
    notifier.sent.clear()

    assert run(send_ending_soon_reminders(booking_service, at(60))) == 0
    assert notifier.sent == []

    assert run(send_ending_soon_reminders(booking_service, at(111))) == 1
    assert doc["reminder_sent"] is True
    assert [n["user_id"] for n in notifier.sent] == ["cust1", "prov1"]
    assert notifier.sent[0]["title"] == "Service Ending Soon"
    assert "Asha" in notifier.sent[0]["body"]

    assert run(send_ending_soon_reminders(booking_service, at(115))) == 0
    assert len(notifier.sent) == 2


def test_overrun_bookings_are_not_reminded(booking_service, bookings, notifier):
    in_progress(booking_service, bookings)
    notifier.sent.clear()

    assert run(send_ending_soon_reminders(booking_service, at(130))) == 0
    assert notifier.sent == []
