from fastapi import APIRouter, Depends
from typing import List

from routes.dependencies import Actor, get_actor, get_booking_service, require_role
from schemas.booking import BookingCreate, BookingDetails, BookingResult, Feedback, ManualAssignRequest
from services.booking_service import BookingService

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"]
)


@router.post("/", response_model=BookingResult, status_code=201)
async def create_booking(
    booking: BookingCreate,
    actor: Actor = Depends(require_role("customer")),
    service: BookingService = Depends(get_booking_service)
):
    """Create a booking and assign the first available nearby provider."""
    return await service.create_booking(actor.user_id, booking)


@router.get("/active", response_model=List[BookingDetails])
async def get_active_bookings(
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service)
):
    return await service.active_bookings(actor.user_id, actor.role)


@router.get("/pending", response_model=List[BookingDetails])
async def get_provider_bookings(
    actor: Actor = Depends(require_role("provider")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.provider_queue(actor.user_id)


@router.get("/history", response_model=List[BookingDetails])
async def get_booking_history(
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service)
):
    return await service.history(actor.user_id, actor.role)


@router.get("/all", response_model=List[BookingDetails])
async def get_all_bookings(
    actor: Actor = Depends(require_role("admin")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.all_bookings()


@router.patch("/{booking_id}/assign", response_model=BookingResult)
async def assign_booking(
    booking_id: str,
    request: ManualAssignRequest,
    actor: Actor = Depends(require_role("admin")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.manual_assign(booking_id, request.provider_id)


@router.patch("/{booking_id}/start", response_model=BookingResult)
async def start_booking(
    booking_id: str,
    actor: Actor = Depends(require_role("provider")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.start(booking_id, actor.user_id)


@router.patch("/{booking_id}/complete", response_model=BookingResult)
async def complete_booking(
    booking_id: str,
    actor: Actor = Depends(require_role("provider")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.complete(booking_id, actor.user_id)


@router.patch("/{booking_id}/stop", response_model=BookingResult)
async def stop_booking(
    booking_id: str,
    actor: Actor = Depends(require_role("provider")),
    service: BookingService = Depends(get_booking_service)
):
    return await service.stop(booking_id, actor.user_id)


@router.patch("/{booking_id}/cancel", response_model=BookingResult)
async def cancel_booking(
    booking_id: str,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service)
):
    return await service.cancel(booking_id, actor.user_id, actor.role)


@router.patch("/{booking_id}/feedback", response_model=BookingResult)
async def leave_feedback(
    booking_id: str,
    feedback: Feedback,
    actor: Actor = Depends(require_role("customer")),
    service: BookingService = Depends(get_booking_service)
):
    """Customer feedback on a completed booking; awards loyalty points to the provider."""
    return await service.leave_feedback(booking_id, actor.user_id, feedback)
