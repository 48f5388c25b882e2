import asyncio
import logging

from config.database import Database
from crud.service_crud import ServiceRepository
from schemas.service import PricingWindow, ServiceCreate, ServiceTask
from scripts.time_parse import format_time_str, parse_slot_label

logger = logging.getLogger(__name__)

CATALOG = [
    {
        "name": "Bathroom Cleaning",
        "slots": [("09:00 AM - 11:00 AM", 400), ("11:00 AM - 01:00 PM", 400), ("03:00 PM - 05:00 PM", 500)],
        "base_duration": 120,
        "tasks": [("Toilet Cleaning", "20m"), ("Floor Scrubbing", "30m"), ("Mirror & Sink Polishing", "15m")],
        "exclusions": ["Deep tile grout removal", "Acid wash"],
        "images": ["/uploads/bathroom.jpg"],
    },
    {
        "name": "Home Cleaning Services",
        "slots": [("08:00 AM - 10:00 AM", 500), ("10:00 AM - 12:00 PM", 500),
                  ("02:00 PM - 04:00 PM", 600), ("04:00 PM - 06:00 PM", 600)],
        "base_duration": 120,
        "tasks": [("Mopping", "30m"), ("Dusting", "30m"), ("Kitchen Cleaning", "30m"), ("Bathroom Cleaning", "30m")],
        "exclusions": ["Window exterior", "Deep carpet cleaning"],
        "images": ["/uploads/cleaning_composite.jpg"],
    },
    {
        "name": "Cooking Services",
        "slots": [("07:00 AM - 09:00 AM", 400), ("12:00 PM - 02:00 PM", 400), ("07:00 PM - 09:00 PM", 500)],
        "base_duration": 120,
        "tasks": [("Meal preparation", "1h"), ("Veggies chopping", "30m"), ("Dishwashing", "30m")],
        "exclusions": ["Grocery shopping"],
        "images": ["/uploads/cooking_prep.jpg"],
    },
    {
        "name": "Water Tank Cleaning",
        "slots": [("09:00 AM - 12:00 PM", 800), ("02:00 PM - 05:00 PM", 800)],
        "base_duration": 180,
        "tasks": [("Sediment removal", "1h"), ("Chlorination", "1h"), ("Inlet/Outlet cleaning", "1h")],
        "exclusions": ["Plumbing repairs"],
        "images": ["/uploads/watertank.jpg"],
    },
    {
        "name": "Cleaning & Folding",
        "slots": [("10:00 AM - 12:00 PM", 300), ("03:00 PM - 05:00 PM", 300)],
        "base_duration": 120,
        "tasks": [("Laundry folding", "1h"), ("Ironing", "30m"), ("Wardrobe organization", "30m")],
        "exclusions": ["Laundry washing"],
        "images": ["/uploads/folding.png"],
    },
]


def to_pricing_windows(slots) -> list:
    windows = []
    for label, price in slots:
        start, end = parse_slot_label(label)
        windows.append(PricingWindow(start_time=format_time_str(start), end_time=format_time_str(end), price=price))
    return windows


def build_catalog() -> list:
    return [
        ServiceCreate(
            name=entry["name"],
            pricing=to_pricing_windows(entry["slots"]),
            base_duration=entry["base_duration"],
            cities=["Mumbai", "Pune"],
            tasks=[ServiceTask(name=name, duration=duration) for name, duration in entry["tasks"]],
            exclusions=entry["exclusions"],
            images=entry["images"],
        )
        for entry in CATALOG
    ]


async def seed():
    await Database.connect_db()
    try:
        services = ServiceRepository(Database())
        for service in build_catalog():
            await services.upsert_by_name(service)
            logger.info(f"Synced service: {service.name}")
        logger.info("Seeding complete")
    finally:
        await Database.close_db()


if __name__ == "__main__":
    asyncio.run(seed())
