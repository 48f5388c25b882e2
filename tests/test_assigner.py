import asyncio

import pytest

from schemas.booking import Booking, BookingCreate
from services.assigner import Assigner, confirmation_message
from services.errors import ConflictError, InvalidInputError
from services.geo_index import GeoIndex
from tests.fakes import PUNE, FakeUsers, provider_doc


def request(time_slot="09:00 am - 11:00 am", date="2025-06-01"):
    return BookingCreate(service_id="SVBATH", address="12 MG Road", date=date, time_slot=time_slot, location=PUNE)


def make_assigner(users, bookings):
    return Assigner(GeoIndex(users), bookings)


def test_no_eligible_provider_creates_pending_booking(bathroom_service, bookings):
    assigner = make_assigner(FakeUsers(), bookings)

    booking, provider = asyncio.run(assigner.create_booking("cust1", bathroom_service, request()))

    assert provider is None
    assert booking.provider_id is None
    assert booking.status == "pending"
    assert confirmation_message(provider) == "No provider available at this time. Booking is pending."
    assert len(bookings.docs) == 1


def test_eligible_provider_gets_confirmed_booking(bathroom_service, users, bookings):
    booking, provider = asyncio.run(make_assigner(users, bookings).create_booking("cust1", bathroom_service, request()))

    assert provider["user_id"] == "prov1"
    assert booking.status == "confirmed"
    assert booking.provider_id == "prov1"
    assert booking.time_slot == "09:00 am - 11:00 am"
    assert (booking.slot.start_minute, booking.slot.end_minute) == (540, 660)
    assert booking.pricing.base == 400
    assert booking.pricing.total == 472
    assert confirmation_message(provider) == "Booking confirmed with provider Asha"


def test_label_is_canonicalised(bathroom_service, users, bookings):
    booking, _ = asyncio.run(
        make_assigner(users, bookings).create_booking("cust1", bathroom_service, request("09:00 AM - 11:00 AM"))
    )
    assert booking.time_slot == "09:00 am - 11:00 am"


def test_busy_provider_is_skipped_for_next(bathroom_service, bookings):
    users = FakeUsers([provider_doc("near", lat=18.5205, lng=73.8568), provider_doc("far", lat=18.60, lng=73.90)])
    assigner = make_assigner(users, bookings)

    first, _ = asyncio.run(assigner.create_booking("cust1", bathroom_service, request()))
    second, _ = asyncio.run(assigner.create_booking("cust2", bathroom_service, request()))
    third, _ = asyncio.run(assigner.create_booking("cust3", bathroom_service, request()))

    assert first.provider_id == "near"
    assert second.provider_id == "far"
    assert third.provider_id is None
    assert third.status == "pending"


def test_overlapping_slot_excludes_provider(bathroom_service, users, bookings):
    service = bathroom_service.model_copy(update={"pricing": [
        bathroom_service.pricing[0].model_copy(update={"start_time": "08:00", "end_time": "13:00"})
    ]})
    assigner = make_assigner(users, bookings)

    asyncio.run(assigner.create_booking("cust1", service, request("09:00 am - 11:00 am")))
    overlapping, _ = asyncio.run(assigner.create_booking("cust2", service, request("10:00 am - 12:00 pm")))

    assert overlapping.provider_id is None


def test_conflict_on_insert_retries_with_next_provider(bathroom_service, bookings):
    users = FakeUsers([provider_doc("near", lat=18.5205, lng=73.8568), provider_doc("far", lat=18.60, lng=73.90)])
    bookings.fail_next_insert_for.add("near")

    booking, provider = asyncio.run(make_assigner(users, bookings).create_booking("cust1", bathroom_service, request()))

    assert provider["user_id"] == "far"
    assert booking.provider_id == "far"


def test_conflicts_exhaust_attempts_then_fall_back_to_pending(bathroom_service, bookings):
    users = FakeUsers([provider_doc("a"), provider_doc("b", lat=18.53), provider_doc("c", lat=18.54), provider_doc("d", lat=18.55)])
    bookings.fail_next_insert_for.update({"a", "b", "c"})

    booking, provider = asyncio.run(make_assigner(users, bookings).create_booking("cust1", bathroom_service, request()))

    assert provider is None
    assert booking.status == "pending"


def test_unpriced_slot_is_rejected_without_write(bathroom_service, users, bookings):
    with pytest.raises(InvalidInputError):
        asyncio.run(make_assigner(users, bookings).create_booking("cust1", bathroom_service, request("10:00 am - 12:00 pm")))
    assert bookings.docs == []


@pytest.mark.parametrize("kwargs", [{"time_slot": "sometime"}, {"date": "June 1st"}])
def test_malformed_request_is_rejected(bathroom_service, users, bookings, kwargs):
    with pytest.raises(InvalidInputError):
        asyncio.run(make_assigner(users, bookings).create_booking("cust1", bathroom_service, request(**kwargs)))
    assert bookings.docs == []


def test_uniqueness_allows_only_one_active_booking_per_provider_slot(bathroom_service, users, bookings):
    first, _ = asyncio.run(make_assigner(users, bookings).create_booking("cust1", bathroom_service, request()))
    duplicate = Booking(**dict(bookings.docs[0], booking_id="BKDUP", customer_id="cust2"))

    with pytest.raises(ConflictError):
        asyncio.run(bookings.insert_booking(duplicate))
    assert [d["booking_id"] for d in bookings.docs] == [first.booking_id]

