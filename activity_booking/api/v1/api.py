# activity_booking/api/v1/api.py

from fastapi import APIRouter

from activity_booking.api.v1.endpoints import (
    audiences,
    bookings,
    health,
    internals,
    notifications,
    people,
    sessions,
)

# This is the main router for the v1 API.
# It will include all the specific endpoint routers.
api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(sessions.router)
api_router.include_router(bookings.router)
api_router.include_router(notifications.router)
api_router.include_router(audiences.router)
api_router.include_router(people.router)
api_router.include_router(internals.router)
