from pydantic import BaseModel
from typing import List


class ProviderSlot(BaseModel):
    """One candidate slot of one provider."""
    label: str
    start_minute: int
    end_minute: int
    price: float
    is_available: bool


class AvailableSlot(BaseModel):
    time_slot: str
    start_minute: int
    price: float
    is_available: bool
    remaining_spots: int


class AvailabilityResponse(BaseModel):
    service: str
    date: str
    duration: int
    slots: List[AvailableSlot]
