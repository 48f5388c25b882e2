import pytest

from schemas.service import PricingWindow, Service
from services.booking_service import BookingService
from tests.fakes import FakeBookings, FakeNotifier, FakeServices, FakeUsers, customer_doc, provider_doc


@pytest.fixture
def bathroom_service():
    return Service(
        service_id="SVBATH",
        name="Bathroom Cleaning",
        pricing=[
            PricingWindow(start_time="09:00", end_time="11:00", price=400),
            PricingWindow(start_time="11:00", end_time="13:00", price=400),
            PricingWindow(start_time="15:00", end_time="17:00", price=500),
        ],
        base_duration=120,
        cities=["Pune"],
    )


@pytest.fixture
def users():
    return FakeUsers([
        customer_doc("cust1", push_token="ExponentPushToken[cust1]"),
        customer_doc("cust2"),
        provider_doc("prov1", name="Asha", push_token="ExponentPushToken[prov1]"),
    ])


@pytest.fixture
def bookings():
    return FakeBookings()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def booking_service(users, bathroom_service, bookings, notifier):
    return BookingService(
        users=users,
        services=FakeServices([bathroom_service]),
        bookings=bookings,
        notifier=notifier
    )
