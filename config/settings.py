from dotenv import load_dotenv
import logging
import os

# Load environment variables
load_dotenv()

DATABASE_NAME = os.getenv('DATABASE_NAME', 'househelp')
APP_TIMEZONE = os.getenv('APP_TIMEZONE', 'Asia/Kolkata')
EXPO_PUSH_URL = os.getenv('EXPO_PUSH_URL', 'https://exp.host/--/api/v2/push/send')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE')


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


PUSH_TIMEOUT_SECONDS = _float_env('PUSH_TIMEOUT_SECONDS', 5.0)
REMINDER_INTERVAL_SECONDS = _float_env('REMINDER_INTERVAL_SECONDS', 60.0)

# Matching and slotting constants
SEARCH_RADIUS_METERS = 40000
SLOT_STEP_MINUTES = 30
MAX_SLOT_ITERATIONS = 100
DEFAULT_WORKING_HOURS = ("08:00", "20:00")
DEFAULT_BASE_DURATION = 60
ASSIGNMENT_MAX_ATTEMPTS = 3

TAX_RATE = 0.18

# Loyalty
POINTS_PER_GIFT = 100
GIFT_DESCRIPTION = "Reward Coupon: ₹100 Off Househelp Supplies"

REMINDER_LEAD_MINUTES = 10

ACTIVE_STATUSES = ["pending", "confirmed", "in_progress"]
BUSY_STATUSES = ["confirmed", "in_progress"]
CLOSED_STATUSES = ["completed", "cancelled"]


def configure_logging() -> None:
    handlers = [logging.StreamHandler()]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE))
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
