from typing import Iterable, Optional
import logging

from config.settings import TAX_RATE
from schemas.booking import Pricing
from schemas.service import PricingWindow
from scripts.time_parse import parse_time_str
from services.errors import InvalidInputError

logger = logging.getLogger(__name__)


def price_for(windows: Iterable[PricingWindow], slot_start: int, slot_end: int) -> Optional[float]:
    """
    Price of the slot [slot_start, slot_end) in minutes of day.

    Windows are checked in declaration order and the first one that fully
    contains the slot wins. Returns None when no window contains it.
    """
    for window in windows:
        try:
            window_start = parse_time_str(window.start_time)
            window_end = parse_time_str(window.end_time)
        except InvalidInputError:
            logger.warning(f"Skipping malformed pricing window {window.start_time}-{window.end_time}")
            continue
        if slot_start >= window_start and slot_end <= window_end:
            return window.price
    return None


def build_pricing(base_price: float) -> Pricing:
    tax = round(base_price * TAX_RATE, 2)
    return Pricing(base=base_price, tax=tax, total=round(base_price + tax, 2))
