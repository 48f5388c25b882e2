from fastapi import APIRouter, Depends
from typing import List

from routes.dependencies import Actor, get_actor, get_booking_service, require_role
from schemas.user import GeoPoint, PushTokenUpdate, User, WorkingHours
from services.booking_service import BookingService

router = APIRouter(
    prefix="/providers",
    tags=["providers"]
)


@router.get("/", response_model=List[User])
async def list_providers(
    actor: Actor = Depends(require_role("admin")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.users.list_providers()


@router.patch("/{provider_id}/verify", response_model=User)
async def verify_provider(
    provider_id: str,
    actor: Actor = Depends(require_role("admin")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.users.verify_provider(provider_id)


@router.patch("/me/location", response_model=User)
async def update_location(
    location: GeoPoint,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service)
):
    return await service.users.update_location(actor.user_id, location)


@router.patch("/me/push-token", response_model=User)
async def update_push_token(
    update: PushTokenUpdate,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service)
):
    return await service.users.update_push_token(actor.user_id, update.push_token)


@router.patch("/me/working-hours", response_model=User)
async def update_working_hours(
    hours: WorkingHours,
    actor: Actor = Depends(require_role("provider")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.users.update_working_hours(actor.user_id, hours)
