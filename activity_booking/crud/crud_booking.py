# activity_booking/crud/crud_booking.py
"""
CRUD operations for bookings.

Creation and deletion only happen through the booking resolver, which pairs
them with the matching capacity ledger adjustment in one transaction. This
module therefore never commits a booking insert or delete on its own.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session as DBSession

from activity_booking.constants.booking import BookingRole
from activity_booking.crud.base import CRUDBase
from activity_booking.models.booking import Booking
from activity_booking.models.session import Session
from activity_booking.schemas.booking import AttendanceUpdate, BookingCreate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CRUDBooking(CRUDBase[Booking, BookingCreate, AttendanceUpdate]):
    def get_live(
        self,
        db: DBSession,
        *,
        session_id: str,
        email: str,
        role: BookingRole,
    ) -> Optional[Booking]:
        """Get the booking for (session, email, role), if any."""
        return db.query(Booking).filter(
            and_(
                Booking.session_id == session_id,
                Booking.email == normalize_email(email),
                Booking.role == BookingRole(role).value,
            )
        ).first()

    def get_by_session(
        self,
        db: DBSession,
        *,
        session_id: str,
        role: Optional[BookingRole] = None,
    ) -> List[Booking]:
        query = db.query(Booking).filter(Booking.session_id == session_id)
        if role is not None:
            query = query.filter(Booking.role == BookingRole(role).value)
        return query.order_by(Booking.created_at.asc()).all()

    def get_by_email(self, db: DBSession, *, email: str) -> List[Booking]:
        """A person's schedule, soonest first."""
        return (
            db.query(Booking)
            .join(Session, Booking.session_id == Session.id)
            .filter(Booking.email == normalize_email(email))
            .order_by(Session.date.asc(), Session.start_time.asc())
            .all()
        )

    def get_multi_filtered(
        self,
        db: DBSession,
        *,
        session_id: Optional[str] = None,
        email: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Booking]:
        query = db.query(Booking)
        if session_id:
            query = query.filter(Booking.session_id == session_id)
        if email:
            query = query.filter(Booking.email == normalize_email(email))
        return query.order_by(Booking.created_at.asc()).offset(skip).limit(limit).all()

    def count_live(self, db: DBSession, *, session_id: str, role: BookingRole) -> int:
        return db.query(func.count(Booking.id)).filter(
            and_(
                Booking.session_id == session_id,
                Booking.role == BookingRole(role).value,
            )
        ).scalar() or 0

    def find_clash(self, db: DBSession, *, email: str, session: Session) -> Optional[Booking]:
        """
        Return a booking held by ``email`` whose session falls on the same day
        and overlaps ``session``'s half-open [start, end) window.
        """
        return (
            db.query(Booking)
            .join(Session, Booking.session_id == Session.id)
            .filter(
                Booking.email == normalize_email(email),
                Session.date == session.date,
                Session.start_time < session.end_time,
                Session.end_time > session.start_time,
            )
            .first()
        )

    def add_pending(
        self,
        db: DBSession,
        *,
        session_id: str,
        person_id: Optional[str],
        name: str,
        email: str,
        obj_in: BookingCreate,
    ) -> Booking:
        """Stage a booking row in the caller's transaction (flushed, not committed)."""
        booking = Booking(
            session_id=session_id,
            person_id=person_id,
            name=name,
            email=normalize_email(email),
            role=obj_in.role.value,
            membership=obj_in.membership.value,
            accessibility_needed=obj_in.accessibility_needed,
            payment_needed=obj_in.payment_needed,
            notes=obj_in.notes,
            attended=False,
        )
        db.add(booking)
        db.flush()
        return booking

    def set_attended(self, db: DBSession, *, db_obj: Booking, attended: bool) -> Booking:
        db_obj.attended = attended
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        logger.info(
            f"Booking {db_obj.id} attendance set to {attended}",
            extra={"booking_id": db_obj.id, "session_id": db_obj.session_id},
        )
        return db_obj

    def attended_volunteer_counts(self, db: DBSession) -> Dict[str, int]:
        """Attended volunteer bookings per email, across all sessions on record."""
        rows = (
            db.query(Booking.email, func.count(Booking.id))
            .filter(
                Booking.role == BookingRole.VOLUNTEER.value,
                Booking.attended == True,  # noqa: E712
            )
            .group_by(Booking.email)
            .all()
        )
        return {email: count for email, count in rows}


booking = CRUDBooking(Booking)
