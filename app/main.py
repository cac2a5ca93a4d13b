import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import appointments, slots
from app.core.config import settings, _ENV_FILE
from app.core.db import async_session_maker, engine
from app.core.errors import SchedulingError
from app.services.appointment_service import AppointmentManager
from app.services.appointment_store import AppointmentStore
from app.services.slot_service import SlotSearch

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)

# Business errors carry a kind; the HTTP status for each lives here, not in the engine.
ERROR_STATUS_CODES: dict[str, int] = {
    "invalid_slot": 400,
    "unauthorized": 403,
    "not_found": 404,
    "no_availability": 404,
    "slot_conflict": 409,
    "cancellation_window_expired": 409,
    "invalid_state": 409,
    "storage_unavailable": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    calendar = settings.business_calendar
    store = AppointmentStore(async_session_maker)
    search = SlotSearch(store, calendar)
    app.state.slot_search = search
    app.state.appointment_manager = AppointmentManager(store, search, calendar)
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info(
        "Business calendar: %02d:00-%02d:00 UTC, %d-min slots, %dh cancellation window, %d-day search horizon",
        calendar.open_hour,
        calendar.close_hour,
        calendar.slot_interval_minutes,
        calendar.modification_window_hours,
        calendar.search_horizon_days,
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Appointment Scheduling API",
    description="Book, check and cancel fixed-length appointment slots",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(slots.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(SchedulingError)
async def scheduling_exception_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.kind, 400)
    if status_code >= 500:
        logger.error("Scheduling request failed (%s): %s", exc.kind, exc.message)
    else:
        logger.info("Scheduling request rejected (%s): %s", exc.kind, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": exc.kind},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return actual error in JSON; include CORS so 500 responses are not blocked by browser."""
    origin = request.headers.get("origin")
    headers = _cors_headers(origin)
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )
    logger.exception("Unhandled exception: %s", exc)
    detail = f"{type(exc).__name__}: {str(exc)}"
    return JSONResponse(
        status_code=500,
        content={"detail": detail},
        headers=headers,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
