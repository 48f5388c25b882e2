from pydantic import BaseModel, Field
from typing import List, Optional
import uuid
from datetime import datetime

from config.settings import DEFAULT_BASE_DURATION


class PricingWindow(BaseModel):
    start_time: str = "00:00"  # HH:MM, 24h
    end_time: str = "23:59"
    price: float = Field(ge=0)


class ServiceTask(BaseModel):
    name: str
    duration: Optional[str] = None


class ServiceBase(BaseModel):
    name: str  # doubles as the provider category key
    pricing: List[PricingWindow] = []
    base_duration: int = Field(DEFAULT_BASE_DURATION, gt=0)  # minutes
    cities: List[str] = []
    tasks: List[ServiceTask] = []
    exclusions: List[str] = []
    images: List[str] = []
    is_enabled: bool = True


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    pricing: Optional[List[PricingWindow]] = None
    base_duration: Optional[int] = Field(None, gt=0)
    cities: Optional[List[str]] = None
    tasks: Optional[List[ServiceTask]] = None
    exclusions: Optional[List[str]] = None
    images: Optional[List[str]] = None
    is_enabled: Optional[bool] = None


class Service(ServiceBase):
    service_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


def generate_service_id() -> str:
    return f"SV{uuid.uuid4().hex[:10].upper()}"
