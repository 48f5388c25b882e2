from pydantic import BaseModel, Field, model_validator
from typing import Literal, Optional
import uuid
from datetime import datetime

from schemas.user import GeoPoint
from scripts.time_parse import parse_slot_label

BookingStatus = Literal["pending", "confirmed", "in_progress", "completed", "cancelled"]


class SlotRange(BaseModel):
    start_minute: int = Field(ge=0, lt=24 * 60)
    end_minute: int = Field(gt=0, le=24 * 60)

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute

    def overlaps(self, other: 'SlotRange') -> bool:
        # half-open [start, end)
        return self.start_minute < other.end_minute and self.end_minute > other.start_minute


class Pricing(BaseModel):
    base: float
    tax: float
    total: float


class Feedback(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class BookingCreate(BaseModel):
    service_id: str
    address: str
    date: str = Field(..., description="Format: YYYY-MM-DD")
    time_slot: str = Field(..., description="e.g. '09:00 am - 11:00 am'")
    location: GeoPoint
    city: Optional[str] = None


class Booking(BaseModel):
    booking_id: str
    customer_id: str
    provider_id: Optional[str] = None
    service_id: str
    address: str
    city: Optional[str] = None
    date: str
    time_slot: str
    slot: Optional[SlotRange] = None
    status: BookingStatus = "pending"
    pricing: Pricing
    location: Optional[GeoPoint] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    feedback: Optional[Feedback] = None
    reminder_sent: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="before")
    @classmethod
    def slot_from_label(cls, data):
        # older documents carry only the time_slot label
        if isinstance(data, dict) and not data.get("slot"):
            parsed = parse_slot_label(data.get("time_slot"))
            if parsed is not None:
                data = dict(data, slot={"start_minute": parsed[0], "end_minute": parsed[1]})
        return data


class PartySummary(BaseModel):
    user_id: str
    name: Optional[str] = None
    phone: Optional[str] = None


class ServiceSummary(BaseModel):
    service_id: str
    name: str


class BookingDetails(Booking):
    """Booking with the service and both parties resolved, as listings return it."""
    service: Optional[ServiceSummary] = None
    customer: Optional[PartySummary] = None
    provider: Optional[PartySummary] = None


class BookingResult(BaseModel):
    booking: Booking
    message: str


class ManualAssignRequest(BaseModel):
    provider_id: str


def generate_booking_id() -> str:
    return f"BK{uuid.uuid4().hex[:10].upper()}"
