from typing import Optional
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from config.database import Database, get_db
from services.booking_service import BookingService


@dataclass
class Actor:
    user_id: str
    role: str


async def get_booking_service(db: Database = Depends(get_db)) -> BookingService:
    return BookingService.from_db(db)


async def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> Actor:
    """Identity as asserted by the upstream auth gateway."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Not authorized")
    return Actor(user_id=x_user_id, role=x_user_role)


def require_role(*roles: str):
    async def checker(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role {actor.role} not authorized for this action"
            )
        return actor
    return checker
