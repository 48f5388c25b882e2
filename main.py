from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
import logging
import os
import uvicorn

from config.database import Database
from routes import booking_routes, provider_routes, service_routes
from services.booking_service import BookingService
from services.errors import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from services.reminder_scheduler import run_reminder_loop

logger = logging.getLogger(__name__)

app = FastAPI(title="Househelp Booking Engine")
# Set during startup
reminder_task = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(service_routes.router)
app.include_router(booking_routes.router)
app.include_router(provider_routes.router)

ERROR_STATUS = {
    NotFoundError: 404,
    InvalidInputError: 400,
    ConflictError: 409,
    UnauthorizedError: 403,
}


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception):
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {str(exc)}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


for error_class, status_code in ERROR_STATUS.items():
    app.add_exception_handler(error_class, _error_handler(status_code))


@app.on_event("startup")
async def startup_db_client():
    global reminder_task
    try:
        await Database.connect_db()
        reminder_task = asyncio.create_task(
            run_reminder_loop(lambda: BookingService.from_db(Database()))
        )
    except Exception as e:
        logger.error(f"Error during startup: {str(e)}")
        raise


@app.on_event("shutdown")
async def shutdown_db_client():
    try:
        if reminder_task is not None:
            reminder_task.cancel()
        await Database.close_db()
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")


@app.get("/")
def read_root():
    return {"message": "Welcome to the Househelp Booking Engine API"}


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    port = int(os.environ.get("PORT", "10000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
