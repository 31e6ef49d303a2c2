# backend/inkmity/main.py

import asyncio
import logging
import os
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as SA_TimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from . import models  # noqa: F401  registers tables on Base.metadata
from .api import (
    api_artist_policy,
    api_availability,
    api_billing,
    api_booking,
    api_message,
    api_user,
)
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, SessionLocal, engine
from .middleware.security_headers import SecurityHeadersMiddleware
from .services.booking_service import expire_stale_checkouts
from .services.errors import BookingError
from .utils.redis_cache import close_redis_client

setup_logging()
logger = logging.getLogger(__name__)

_BOOT_TS = time.time()

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Inkmity API", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1024)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Return JSON responses for unhandled errors and log them."""
    try:
        response = await call_next(request)
    except StarletteHTTPException as exc:
        logger.error(
            "HTTP error %s at %s: %s", exc.status_code, request.url.path, exc.detail
        )
        response = ORJSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}
        )
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 to reduce retry storms
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        response = ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database busy, please retry"},
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error: %s", exc)
        response = ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )
    return response


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Map domain errors (conflict, cooldown, transitions) to their status codes."""
    logger.info("Booking error at %s: %s %s", request.url.path, exc.code, exc.message)
    return ORJSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


def jsonable_errors(errors):
    # pydantic puts the raw exception under ctx["error"] for value errors
    out = []
    for err in errors:
        err = dict(err)
        ctx = err.get("ctx")
        if ctx and "error" in ctx:
            err["ctx"] = {**ctx, "error": str(ctx["error"])}
        out.append(err)
    return out


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(errors)},
    )


@app.get("/healthz/live", tags=["health"])
async def health_live():
    """Liveness probe: process can respond; does not touch the DB."""
    return {
        "status": "ok",
        "kind": "live",
        "uptime_s": round(time.time() - _BOOT_TS, 1),
        "pid": os.getpid(),
    }


def _db_ping_sync() -> float:
    t0 = time.perf_counter()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return (time.perf_counter() - t0) * 1000.0


@app.get("/healthz", tags=["health"])
async def healthz():
    """Readiness probe: pings the database."""
    try:
        ping_ms = await asyncio.to_thread(_db_ping_sync)
    except OperationalError as exc:
        logger.error("Readiness DB ping failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "kind": "ready", "error": "db_unavailable"},
            headers={"Cache-Control": "no-store"},
        )
    return ORJSONResponse(
        content={"status": "ok", "kind": "ready", "db_ping_ms": round(ping_ms, 1)},
        headers={"Cache-Control": "no-store"},
    )


api_prefix = settings.API_PREFIX  # usually "/api"

app.include_router(api_booking.router, prefix=f"{api_prefix}/bookings", tags=["bookings"])
app.include_router(api_availability.router, prefix=f"{api_prefix}/availability", tags=["availability"])
app.include_router(api_artist_policy.router, prefix=f"{api_prefix}/artists", tags=["artists"])
app.include_router(api_billing.router, prefix=f"{api_prefix}/billing", tags=["billing"])
app.include_router(api_message.router, prefix=f"{api_prefix}/messages", tags=["messages"])
app.include_router(api_user.router, prefix=f"{api_prefix}/users", tags=["users"])
app.include_router(api_user.dashboard_router, prefix=f"{api_prefix}/dashboard", tags=["dashboard"])


def run_expiry_sweep() -> int:
    """Expire unpaid checkouts once. Separated from the loop for testing."""
    with SessionLocal() as db:
        return len(expire_stale_checkouts(db))


async def expire_checkouts_loop() -> None:
    """Periodically expire bookings whose checkout window closed."""
    while True:
        await asyncio.sleep(settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        # Retry with backoff on transient DB failures
        delay = 5
        max_retries = 5
        for attempt in range(max_retries):
            try:
                await asyncio.to_thread(run_expiry_sweep)
                break
            except OperationalError as exc:  # pragma: no cover - transient DB outage
                logger.warning("Expiry sweep failed (attempt %d): %s", attempt + 1, exc)
                if attempt < max_retries - 1:
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, 60)
                    continue
                # Give up for this cycle; try again next tick
                break
            except Exception as exc:  # pragma: no cover - keep the loop alive
                logger.exception("Expiry sweep crashed: %s", exc)
                break


@app.on_event("startup")
async def start_background_tasks() -> None:
    """Launch background maintenance tasks."""
    if not settings.ENABLE_BACKGROUND_TASKS:
        logger.info("Background tasks disabled")
        return
    asyncio.create_task(expire_checkouts_loop())


@app.on_event("shutdown")
def shutdown_redis_client() -> None:
    """Close Redis connections when the application shuts down."""
    logger.info("Closing Redis client")
    close_redis_client()


@app.get("/")
async def root():
    return {"message": "Welcome to the Inkmity API"}
