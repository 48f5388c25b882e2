from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from routes.dependencies import Actor, get_booking_service, require_role
from schemas.availability import AvailabilityResponse
from schemas.service import Service, ServiceCreate, ServiceUpdate
from schemas.user import GeoPoint
from services.booking_service import BookingService

router = APIRouter(
    prefix="/services",
    tags=["services"]
)


def _point(lat: Optional[float], lng: Optional[float]) -> Optional[GeoPoint]:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Both lat and lng are required")
    try:
        return GeoPoint(lat=lat, lng=lng)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid coordinates")


@router.get("/", response_model=List[Service])
async def list_services(
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    city: Optional[str] = None,
    all: bool = False,
    service: BookingService = Depends(get_booking_service)
):
    """Services offered near (lat, lng), or in a city, or every service with all=true."""
    return await service.list_services(point=_point(lat, lng), city=city, include_all=all)


@router.get("/{service_id}", response_model=Service)
async def get_service(service_id: str, service: BookingService = Depends(get_booking_service)):
    return await service.services.get_service(service_id)


@router.get("/{service_id}/slots", response_model=AvailabilityResponse)
async def get_service_slots(
    service_id: str,
    date: str = Query(..., description="Format: YYYY-MM-DD"),
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    duration: Optional[int] = Query(None, gt=0),
    service: BookingService = Depends(get_booking_service)
):
    return await service.get_availability(service_id, date, _point(lat, lng), duration)


@router.post("/", response_model=Service, status_code=201)
async def create_service(
    new_service: ServiceCreate,
    actor: Actor = Depends(require_role("admin")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.services.create_service(new_service)


@router.patch("/{service_id}", response_model=Service)
async def update_service(
    service_id: str,
    update: ServiceUpdate,
    actor: Actor = Depends(require_role("admin")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.services.update_service(service_id, update)
