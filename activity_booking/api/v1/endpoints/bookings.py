# activity_booking/api/v1/endpoints/bookings.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from activity_booking.api import deps
from activity_booking.constants.booking import BookingRole
from activity_booking.core.config import settings
from activity_booking.core.limiter import limiter
from activity_booking.crud import crud_booking, crud_session
from activity_booking.db.session import get_db
from activity_booking.schemas.booking import AttendanceUpdate
from activity_booking.schemas.booking import Booking as BookingSchema
from activity_booking.schemas.booking import BookingCreate
from activity_booking.schemas.token import TokenPayload
from activity_booking.services.booking_resolver import BookingActor, booking_resolver

router = APIRouter(tags=["Bookings"])


@router.post(
    "/sessions/{sessionId}/bookings",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.BOOKING_RATE_LIMIT)
def register_for_session(
    request: Request,  # Required for rate limiter
    sessionId: str,
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Book the current user onto a session as a participant or volunteer."""
    return booking_resolver.register(
        db,
        actor=BookingActor.from_token(current_user),
        session_id=sessionId,
        obj_in=booking_in,
    )


@router.delete("/sessions/{sessionId}/bookings", status_code=status.HTTP_204_NO_CONTENT)
def cancel_booking(
    sessionId: str,
    role: BookingRole = BookingRole.PARTICIPANT,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Cancel the current user's booking and free the seat."""
    booking_resolver.unregister(
        db, actor_email=current_user.email, session_id=sessionId, role=role
    )


@router.get("/sessions/{sessionId}/bookings", response_model=List[BookingSchema])
def list_session_bookings(
    sessionId: str,
    role: Optional[BookingRole] = None,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    if not crud_session.session.get(db, id=sessionId):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return crud_booking.booking.get_by_session(db, session_id=sessionId, role=role)


@router.get("/bookings/me", response_model=List[BookingSchema])
def list_my_bookings(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """The current user's bookings, soonest session first."""
    return crud_booking.booking.get_by_email(db, email=current_user.email)


@router.get("/bookings", response_model=List[BookingSchema])
def list_bookings(
    session_id: Optional[str] = None,
    email: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    return crud_booking.booking.get_multi_filtered(
        db, session_id=session_id, email=email, skip=skip, limit=limit
    )


@router.patch("/bookings/{bookingId}/attendance", response_model=BookingSchema)
def update_attendance(
    bookingId: str,
    attendance_in: AttendanceUpdate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Record whether the person attended. Feeds the experienced-volunteer cohort."""
    return booking_resolver.mark_attended(
        db, booking_id=bookingId, attended=attendance_in.attended
    )
