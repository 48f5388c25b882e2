from typing import List, Optional
from datetime import datetime

from pymongo import ReturnDocument

from config.database import Database
from schemas.service import PricingWindow, Service, ServiceCreate, ServiceUpdate, generate_service_id
from scripts.time_parse import parse_time_str
from services.errors import InvalidInputError, NotFoundError


def validate_pricing(pricing: List[PricingWindow]) -> None:
    for window in pricing:
        if parse_time_str(window.start_time) >= parse_time_str(window.end_time):
            raise InvalidInputError(
                f"Pricing window {window.start_time}-{window.end_time} must start before it ends"
            )


class ServiceRepository:
    def __init__(self, db: Database):
        self.db = db

    async def create_service(self, service: ServiceCreate) -> Service:
        validate_pricing(service.pricing)
        service_dict = service.model_dump()
        service_dict["name"] = service.name.strip()
        service_dict["service_id"] = generate_service_id()
        service_dict["created_at"] = datetime.utcnow()
        service_dict["updated_at"] = datetime.utcnow()
        await self.db.services.insert_one(service_dict)
        return Service(**service_dict)

    async def get_service(self, service_id: str) -> Service:
        service = await self.db.services.find_one({"service_id": service_id})
        if not service:
            raise NotFoundError("Service not found")
        return Service(**service)

    async def update_service(self, service_id: str, update: ServiceUpdate) -> Service:
        service_data = update.model_dump(exclude_none=True)
        if "name" in service_data:
            service_data["name"] = service_data["name"].strip()
        if update.pricing is not None:
            validate_pricing(update.pricing)
        service_data["updated_at"] = datetime.utcnow()

        service = await self.db.services.find_one_and_update(
            {"service_id": service_id},
            {"$set": service_data},
            return_document=ReturnDocument.AFTER
        )
        if not service:
            raise NotFoundError("Service not found")
        return Service(**service)

    async def list_services(
        self,
        include_disabled: bool = False,
        city: Optional[str] = None
    ) -> List[Service]:
        query = {} if include_disabled else {"is_enabled": True}
        if city:
            query["cities"] = city
        services = await self.db.services.find(query).to_list(length=None)
        return [Service(**service) for service in services]

    async def upsert_by_name(self, service: ServiceCreate) -> None:
        validate_pricing(service.pricing)
        service_dict = service.model_dump()
        service_dict["updated_at"] = datetime.utcnow()
        await self.db.services.update_one(
            {"name": service.name},
            {
                "$set": service_dict,
                "$setOnInsert": {"service_id": generate_service_id(), "created_at": datetime.utcnow()}
            },
            upsert=True
        )
