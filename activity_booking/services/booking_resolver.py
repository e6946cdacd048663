# activity_booking/services/booking_resolver.py
"""
Booking resolver: admits or rejects a person's registration for a session.

Each (person, session, role) is either Unbooked or Booked. Register and
unregister are the only transitions, and each commits the booking row
together with its capacity ledger adjustment, so seats and bookings never
drift apart on a partial failure.

Rules are checked in a fixed order and the first failure wins:
existence, role offered, duplicate, timing clash, accessibility, capacity.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session as DBSession

from activity_booking.constants.booking import BookingRole, MobilityStatus
from activity_booking.core.exceptions import (
    AccessibilityMismatch,
    AlreadyBooked,
    Busy,
    CapacityExhausted,
    NotBooked,
    NotFound,
    RoleNotOffered,
    SessionFull,
    TimingClash,
)
from activity_booking.crud.crud_booking import booking as crud_booking
from activity_booking.crud.crud_booking import normalize_email
from activity_booking.crud.crud_seat import seat_ledger
from activity_booking.crud.crud_session import session as crud_session
from activity_booking.models.booking import Booking
from activity_booking.schemas.booking import BookingCreate

logger = logging.getLogger(__name__)


@dataclass
class BookingActor:
    """The authenticated person a booking is made for."""
    person_id: Optional[str]
    email: str
    name: str
    mobility_status: Optional[MobilityStatus] = None

    @classmethod
    def from_token(cls, token) -> "BookingActor":
        return cls(
            person_id=token.sub,
            email=token.email,
            name=token.name or token.email.split("@")[0],
            mobility_status=token.mobility_status,
        )


class BookingResolver:
    def register(
        self,
        db: DBSession,
        *,
        actor: BookingActor,
        session_id: str,
        obj_in: BookingCreate,
    ) -> Booking:
        """
        Book ``actor`` onto a session in the role given by ``obj_in``.

        Raises:
            NotFound, RoleNotOffered, AlreadyBooked, TimingClash,
            AccessibilityMismatch, SessionFull, Busy
        """
        role = BookingRole(obj_in.role)
        email = normalize_email(actor.email)
        log_extra = {"session_id": session_id, "role": role.value, "email": email}

        session = crud_session.get(db, id=session_id)
        if not session:
            raise NotFound("Session not found.", details={"session_id": session_id})

        if role.value not in session.roles:
            raise RoleNotOffered(
                f"This session does not take {role.value} bookings.",
                details={"session_id": session_id, "role": role.value},
            )

        if crud_booking.get_live(db, session_id=session_id, email=email, role=role):
            raise AlreadyBooked(
                f"You are already booked on this session as a {role.value}.",
                details={"session_id": session_id, "role": role.value},
            )

        clash = crud_booking.find_clash(db, email=email, session=session)
        if clash:
            raise TimingClash(
                "You already have a booking at an overlapping time on this day.",
                details={
                    "session_id": session_id,
                    "clashing_session_id": clash.session_id,
                    "clashing_booking_id": clash.id,
                },
            )

        if (
            role == BookingRole.PARTICIPANT
            and actor.mobility_status is not None
            and MobilityStatus(actor.mobility_status).requires_accessible_venue
            and not session.wheelchair_accessible
        ):
            raise AccessibilityMismatch(
                "This session is not wheelchair accessible.",
                details={
                    "session_id": session_id,
                    "mobility_status": MobilityStatus(actor.mobility_status).value,
                },
            )

        try:
            remaining = seat_ledger.reserve(db, session_id=session_id, role=role)
            booking = crud_booking.add_pending(
                db,
                session_id=session_id,
                person_id=actor.person_id,
                name=obj_in.name or actor.name,
                email=email,
                obj_in=obj_in,
            )
            db.commit()
        except CapacityExhausted:
            db.rollback()
            logger.info("Booking rejected: session full", extra=log_extra)
            raise SessionFull(
                f"There are no {role.value} places left on this session.",
                details={"session_id": session_id, "role": role.value},
            )
        except IntegrityError:
            # A concurrent request booked the same (session, email, role), or
            # the session was deleted mid-flight; the seat decrement rolls back.
            db.rollback()
            if crud_session.get(db, id=session_id) is None:
                raise NotFound("Session not found.", details={"session_id": session_id})
            raise AlreadyBooked(
                f"You are already booked on this session as a {role.value}.",
                details={"session_id": session_id, "role": role.value},
            )
        except OperationalError as e:
            db.rollback()
            logger.warning(f"Booking transaction could not complete: {e}", extra=log_extra)
            raise Busy("The session is busy, please try again.", details={"session_id": session_id})
        except Exception:
            db.rollback()
            raise

        db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created, {remaining} {role.value} seat(s) left",
            extra={**log_extra, "booking_id": booking.id},
        )
        return booking

    def unregister(
        self,
        db: DBSession,
        *,
        actor_email: str,
        session_id: str,
        role: BookingRole = BookingRole.PARTICIPANT,
    ) -> None:
        """Cancel a live booking and return its seat. A second call raises NotBooked."""
        role = BookingRole(role)
        email = normalize_email(actor_email)

        booking = crud_booking.get_live(db, session_id=session_id, email=email, role=role)
        if not booking:
            raise NotBooked(
                f"You are not booked on this session as a {role.value}.",
                details={"session_id": session_id, "role": role.value},
            )
        booking_id = booking.id

        try:
            deleted = (
                db.query(Booking)
                .filter(Booking.id == booking_id)
                .delete(synchronize_session=False)
            )
            if deleted == 0:
                # Cancelled by a concurrent request since the read above
                db.rollback()
                raise NotBooked(
                    f"You are not booked on this session as a {role.value}.",
                    details={"session_id": session_id, "role": role.value},
                )
            remaining = seat_ledger.release(db, session_id=session_id, role=role)
            db.commit()
        except OperationalError as e:
            db.rollback()
            logger.warning(f"Cancellation could not complete: {e}", extra={"session_id": session_id})
            raise Busy("The session is busy, please try again.", details={"session_id": session_id})
        except Exception:
            db.rollback()
            raise
        db.expunge(booking)

        logger.info(
            f"Booking {booking_id} cancelled, {remaining} {role.value} seat(s) left",
            extra={"session_id": session_id, "role": role.value, "email": email},
        )

    def mark_attended(self, db: DBSession, *, booking_id: str, attended: bool) -> Booking:
        booking = crud_booking.get(db, id=booking_id)
        if not booking:
            raise NotFound("Booking not found.", details={"booking_id": booking_id})
        return crud_booking.set_attended(db, db_obj=booking, attended=attended)


booking_resolver = BookingResolver()
