# activity_booking/api/v1/endpoints/sessions.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from activity_booking.api import deps
from activity_booking.constants.booking import BookingRole, SessionCategory
from activity_booking.crud import crud_session
from activity_booking.db.session import get_db
from activity_booking.schemas.session import Session as SessionSchema
from activity_booking.schemas.session import SessionCreate, SessionUpdate
from activity_booking.schemas.token import TokenPayload

router = APIRouter(tags=["Sessions"])


@router.post("/sessions", response_model=SessionSchema, status_code=status.HTTP_201_CREATED)
def create_session(
    session_in: SessionCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Publish a new session with its per-role capacities."""
    return crud_session.session.create(db, obj_in=session_in)


@router.get("/sessions", response_model=List[SessionSchema])
def list_sessions(
    role: Optional[BookingRole] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    category: Optional[SessionCategory] = None,
    featured: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """List sessions in date order, optionally filtered by offered role, dates and category."""
    return crud_session.session.get_multi_filtered(
        db,
        role=role,
        date_from=date_from,
        date_to=date_to,
        category=category,
        featured=featured,
        skip=skip,
        limit=limit,
    )


@router.get("/sessions/featured", response_model=Optional[SessionSchema])
def get_featured_session(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """The currently featured session, or null when none is featured."""
    return crud_session.session.get_featured(db)


@router.get("/sessions/{sessionId}", response_model=SessionSchema)
def get_session(
    sessionId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    session = crud_session.session.get(db, id=sessionId)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return session


@router.patch("/sessions/{sessionId}", response_model=SessionSchema)
def update_session(
    sessionId: str,
    session_in: SessionUpdate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Update a session's details. Capacity changes keep booked seats booked."""
    session = crud_session.session.get(db, id=sessionId)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return crud_session.session.update(db, db_obj=session, obj_in=session_in)


@router.delete("/sessions/{sessionId}")
def delete_session(
    sessionId: str,
    cascade: bool = False,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """
    Delete a session. Refused while it has bookings unless `cascade=true`,
    in which case its bookings are deleted with it.
    """
    deleted_bookings = crud_session.session.remove(db, id=sessionId, cascade=cascade)
    return {"id": sessionId, "deleted_bookings": deleted_bookings}


@router.post("/sessions/{sessionId}/feature", response_model=SessionSchema)
def feature_session(
    sessionId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Make this the featured session, unfeaturing any other."""
    return crud_session.session.set_featured(db, id=sessionId)


@router.delete("/sessions/{sessionId}/feature", response_model=SessionSchema)
def unfeature_session(
    sessionId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    session = crud_session.session.get(db, id=sessionId)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    crud_session.session.clear_featured(db, id=sessionId)
    db.refresh(session)
    return session
