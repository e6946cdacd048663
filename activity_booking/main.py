# activity_booking/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from activity_booking.api.v1.api import api_router
from activity_booking.core.config import settings
from activity_booking.core.exceptions import (
    AppError,
    InvariantViolation,
    app_error_handler,
    invariant_violation_handler,
)
from activity_booking.core.limiter import limiter
from activity_booking.db.session import init_db
from activity_booking.scheduler import init_scheduler, shutdown_scheduler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    if settings.AUTO_CREATE_TABLES:
        init_db()
        logger.info("Database tables checked and created if necessary.")
    if settings.SCHEDULER_ENABLED:
        init_scheduler()
    yield
    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()
    logger.info("Application shutting down...")


app = FastAPI(
    title="Activity Booking Service",
    version="1.0.0",
    description="""
        **Community Activity Booking Service**

        Schedules group activity sessions and books participants and
        volunteers onto them without ever overselling a seat.

        ## Features

        * **Session Catalog**: Publish, edit, delete and feature sessions
        * **Bookings**: Register and cancel, with clash and accessibility checks
        * **Notifications**: Audience-targeted messages with per-person read state
        * **Audiences**: Preview who a notification will reach

        ## Authentication

        Endpoints require a JWT issued by the identity service via the
        `Authorization: Bearer <token>` header. Internal endpoints use the
        `X-Internal-Api-Key` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(InvariantViolation, invariant_violation_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # Allow cookies and authorization headers
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Activity Booking Service is running"}


# If running directly (for development)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "activity_booking.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # development only
        log_level=settings.LOG_LEVEL.lower(),
    )
