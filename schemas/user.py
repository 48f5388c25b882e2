from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from config.settings import DEFAULT_WORKING_HOURS


class GeoPoint(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_geojson(self) -> dict:
        return {"type": "Point", "coordinates": [self.lng, self.lat]}

    @classmethod
    def from_geojson(cls, location: Optional[dict]) -> Optional['GeoPoint']:
        if not location or len(location.get("coordinates") or []) != 2:
            return None
        lng, lat = location["coordinates"]
        return cls(lat=lat, lng=lng)


class WorkingHours(BaseModel):
    start: str = DEFAULT_WORKING_HOURS[0]  # 24h format
    end: str = DEFAULT_WORKING_HOURS[1]


class UserBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    phone: str
    role: Literal["customer", "provider", "admin"] = "customer"
    city: Optional[str] = None
    service_category: Optional[str] = None


class User(UserBase):
    user_id: str
    is_verified: bool = False
    is_suspended: bool = False
    earnings: float = 0
    points: int = 0
    gifts: List[str] = []
    push_token: Optional[str] = None
    location: Optional[dict] = None  # GeoJSON point, [lng, lat]
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PushTokenUpdate(BaseModel):
    push_token: str

    @field_validator("push_token")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("push_token must not be blank")
        return value.strip()
