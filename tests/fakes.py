import copy
from datetime import datetime

from config.settings import ACTIVE_STATUSES, BUSY_STATUSES
from schemas.booking import Booking
from schemas.user import GeoPoint, User
from services.booking_state import convert_points
from services.errors import ConflictError, NotFoundError
from services.geo_index import category_matches, distance_meters
from services.slot_generator import busy_intervals_from_bookings

PUNE = GeoPoint(lat=18.5204, lng=73.8567)


def provider_doc(user_id, category="Bathroom Cleaning", lat=18.5204, lng=73.8567, verified=True,
                 hours=None, name=None, push_token=None):
    return {
        "user_id": user_id,
        "name": name or f"Provider {user_id}",
        "phone": "9999999999",
        "role": "provider",
        "service_category": category,
        "is_verified": verified,
        "location": {"type": "Point", "coordinates": [lng, lat]},
        "working_hours": hours or {"start": "08:00", "end": "20:00"},
        "earnings": 0,
        "points": 0,
        "gifts": [],
        "push_token": push_token,
    }


def customer_doc(user_id, push_token=None):
    return {"user_id": user_id, "name": f"Customer {user_id}", "phone": "8888888888",
            "role": "customer", "push_token": push_token}


class FakeUsers:
    def __init__(self, docs=()):
        self.docs = {doc["user_id"]: doc for doc in docs}

    async def get_user(self, user_id):
        return self.docs.get(user_id)

    async def get_provider(self, provider_id):
        doc = self.docs.get(provider_id)
        if not doc or doc.get("role") != "provider":
            raise NotFoundError(f"Provider with ID {provider_id} not found")
        return doc

    async def list_providers(self):
        return [User(**d) for d in self.docs.values() if d.get("role") == "provider"]

    async def find_nearby_providers(self, point, category=None, exclude_ids=None, radius_meters=40000):
        found = []
        for doc in self.docs.values():
            if doc.get("role") != "provider" or not doc.get("is_verified"):
                continue
            if category is not None and not category_matches(doc.get("service_category"), category):
                continue
            if doc["user_id"] in (exclude_ids or ()):
                continue
            distance = distance_meters(point, GeoPoint.from_geojson(doc["location"]))
            if distance <= radius_meters:
                found.append((distance, doc))
        return [doc for _, doc in sorted(found, key=lambda pair: pair[0])]

    async def nearby_categories(self, point):
        categories = []
        for doc in await self.find_nearby_providers(point):
            if doc["service_category"] not in categories:
                categories.append(doc["service_category"])
        return categories

    async def verify_provider(self, provider_id):
        doc = await self.get_provider(provider_id)
        doc["is_verified"] = True
        return User(**doc)

    async def add_earnings(self, provider_id, amount):
        self.docs[provider_id]["earnings"] = self.docs[provider_id].get("earnings", 0) + amount

    async def award_points(self, provider_id, points):
        doc = self.docs[provider_id]
        remaining, gifts = convert_points(doc.get("points", 0) + points)
        doc["points"] = remaining
        doc.setdefault("gifts", []).extend(["gift"] * gifts)
        return gifts


class FakeServices:
    def __init__(self, services=()):
        self.items = {s.service_id: s for s in services}

    async def get_service(self, service_id):
        if service_id not in self.items:
            raise NotFoundError("Service not found")
        return self.items[service_id]

    async def list_services(self, include_disabled=False, city=None):
        return [s for s in self.items.values()
                if (include_disabled or s.is_enabled) and (not city or city in s.cities)]


class FakeBookings:
    """In-memory bookings enforcing the active (provider, date, slot) uniqueness rule."""

    def __init__(self):
        self.docs = []
        self.fail_next_insert_for = set()

    def _collides(self, doc, ignore_id=None):
        if not isinstance(doc.get("provider_id"), str) or doc["status"] not in ACTIVE_STATUSES:
            return False
        for other in self.docs:
            if other["booking_id"] == ignore_id:
                continue
            if (other.get("provider_id") == doc["provider_id"] and other["date"] == doc["date"]
                    and other["status"] in ACTIVE_STATUSES and other["slot"] == doc["slot"]):
                return True
        return False

    async def insert_booking(self, booking: Booking):
        doc = booking.model_dump()
        if doc["provider_id"] in self.fail_next_insert_for:
            self.fail_next_insert_for.discard(doc["provider_id"])
            raise ConflictError("simulated concurrent insert")
        if self._collides(doc):
            raise ConflictError("Provider already has an active booking in this time slot")
        self.docs.append(doc)
        return booking

    async def get_booking(self, booking_id):
        for doc in self.docs:
            if doc["booking_id"] == booking_id:
                return copy.deepcopy(doc)
        raise NotFoundError("Booking not found")

    async def active_on_date(self, provider_ids, date):
        ids = set(provider_ids)
        return [d for d in self.docs
                if d.get("provider_id") in ids and d["date"] == date and d["status"] in ACTIVE_STATUSES]

    async def busy_provider_ids(self, date, slot):
        busy = set()
        for doc in self.docs:
            if doc["date"] != date or doc["status"] not in BUSY_STATUSES or not doc.get("provider_id"):
                continue
            if any(i.overlaps(slot) for i in busy_intervals_from_bookings([doc])):
                busy.add(doc["provider_id"])
        return busy

    async def transition(self, booking_id, from_statuses, fields, extra_filter=None):
        for doc in self.docs:
            if doc["booking_id"] != booking_id or doc["status"] not in from_statuses:
                continue
            if any(doc.get(k) != v for k, v in (extra_filter or {}).items()):
                return None
            candidate = dict(doc, **fields, updated_at=datetime.utcnow())
            if self._collides(candidate, ignore_id=booking_id):
                raise ConflictError("Provider already has an active booking in this time slot")
            doc.update(candidate)
            return copy.deepcopy(doc)
        return None

    async def list_bookings(self, customer_id=None, provider_id=None, statuses=None, newest_first=False):
        docs = [d for d in self.docs
                if (customer_id is None or d["customer_id"] == customer_id)
                and (provider_id is None or d.get("provider_id") == provider_id)
                and (statuses is None or d["status"] in statuses)]
        return [Booking(**d) for d in docs]

    async def in_progress_pending_reminder(self):
        return [d for d in self.docs
                if d["status"] == "in_progress" and d.get("started_at") and not d.get("reminder_sent")]

    async def mark_reminder_sent(self, booking_id):
        for doc in self.docs:
            if doc["booking_id"] == booking_id and not doc.get("reminder_sent"):
                doc["reminder_sent"] = True
                return True
        return False


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, push_token, title, body, user_id=None):
        self.sent.append({"push_token": push_token, "title": title, "body": body, "user_id": user_id})


