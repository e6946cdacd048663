# activity_booking/crud/crud_seat.py
"""
Capacity ledger: the only writer of ``session_seats.seats_remaining``.

Every seat mutation is a guarded compare-and-swap (``UPDATE ... WHERE
seats_remaining = <observed>``) so two requests racing for the last seat
cannot both win. A lost race is retried a bounded number of times before
``Busy`` is raised.

Mutations flush but never commit: the caller's unit of work commits the
seat change together with the booking row it belongs to.
"""

import logging
from typing import Dict, List

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from activity_booking.constants.booking import SEAT_CAS_MAX_RETRIES, BookingRole
from activity_booking.core.exceptions import (
    Busy,
    CapacityBelowDemand,
    CapacityExhausted,
    InvariantViolation,
    RoleNotOffered,
)
from activity_booking.models.booking import Booking
from activity_booking.models.session_seat import SessionSeat

logger = logging.getLogger(__name__)


class CRUDSeatLedger:
    """Per-(session, role) seat bookkeeping."""

    def _row_filter(self, session_id: str, role: BookingRole):
        return and_(
            SessionSeat.session_id == session_id,
            SessionSeat.role == BookingRole(role).value,
        )

    def get_by_session(self, db: Session, *, session_id: str) -> List[SessionSeat]:
        return (
            db.query(SessionSeat)
            .filter(SessionSeat.session_id == session_id)
            .order_by(SessionSeat.role)
            .all()
        )

    def _read_counts(self, db: Session, session_id: str, role: BookingRole):
        # Column queries bypass the identity map, so this is always the stored value.
        return (
            db.query(SessionSeat.capacity, SessionSeat.seats_remaining)
            .filter(self._row_filter(session_id, role))
            .first()
        )

    def seed(
        self, db: Session, *, session_id: str, capacities: Dict[BookingRole, int]
    ) -> List[SessionSeat]:
        """Create one row per offered role with every seat open."""
        rows = []
        for role, capacity in capacities.items():
            row = SessionSeat(
                session_id=session_id,
                role=BookingRole(role).value,
                capacity=capacity,
                seats_remaining=capacity,
            )
            db.add(row)
            rows.append(row)
        db.flush()
        return rows

    def reserve(self, db: Session, *, session_id: str, role: BookingRole) -> int:
        """
        Take one seat. Returns the seats remaining after the reservation.

        Raises:
            CapacityExhausted: no seat left for this role
            RoleNotOffered: the session does not offer this role
            Busy: the compare-and-swap kept losing to concurrent writers
        """
        role = BookingRole(role)
        for attempt in range(1, SEAT_CAS_MAX_RETRIES + 1):
            counts = self._read_counts(db, session_id, role)
            if counts is None:
                raise RoleNotOffered(
                    f"This session does not take {role.value} bookings.",
                    details={"session_id": session_id, "role": role.value},
                )
            _, observed = counts
            if observed < 1:
                raise CapacityExhausted(
                    "No seats left for this role.",
                    details={"session_id": session_id, "role": role.value},
                )

            updated = (
                db.query(SessionSeat)
                .filter(
                    self._row_filter(session_id, role),
                    SessionSeat.seats_remaining == observed,
                )
                .update(
                    {"seats_remaining": observed - 1, "updated_at": func.now()},
                    synchronize_session=False,
                )
            )
            if updated == 1:
                return observed - 1

            logger.info(
                f"Seat reservation lost a race for session {session_id} ({role.value}), "
                f"attempt {attempt}/{SEAT_CAS_MAX_RETRIES}"
            )

        logger.warning(
            f"Seat reservation gave up after {SEAT_CAS_MAX_RETRIES} attempts",
            extra={"session_id": session_id, "role": role.value},
        )
        raise Busy(
            "The session is busy, please try again.",
            details={"session_id": session_id, "role": role.value},
        )

    def release(self, db: Session, *, session_id: str, role: BookingRole) -> int:
        """
        Give one seat back. Returns the seats remaining after the release.

        Releasing past capacity means a booking was lost without its seat
        being accounted for; that is surfaced, never clamped.
        """
        role = BookingRole(role)
        for attempt in range(1, SEAT_CAS_MAX_RETRIES + 1):
            counts = self._read_counts(db, session_id, role)
            if counts is None:
                raise InvariantViolation(
                    "Seat row missing while releasing a booked seat",
                    details={"session_id": session_id, "role": role.value},
                )
            capacity, observed = counts
            if observed >= capacity:
                raise InvariantViolation(
                    "Releasing a seat would exceed capacity",
                    details={
                        "session_id": session_id,
                        "role": role.value,
                        "capacity": capacity,
                        "seats_remaining": observed,
                    },
                )

            updated = (
                db.query(SessionSeat)
                .filter(
                    self._row_filter(session_id, role),
                    SessionSeat.seats_remaining == observed,
                )
                .update(
                    {"seats_remaining": observed + 1, "updated_at": func.now()},
                    synchronize_session=False,
                )
            )
            if updated == 1:
                return observed + 1

            logger.info(
                f"Seat release lost a race for session {session_id} ({role.value}), "
                f"attempt {attempt}/{SEAT_CAS_MAX_RETRIES}"
            )

        logger.warning(
            f"Seat release gave up after {SEAT_CAS_MAX_RETRIES} attempts",
            extra={"session_id": session_id, "role": role.value},
        )
        raise Busy(
            "The session is busy, please try again.",
            details={"session_id": session_id, "role": role.value},
        )

    def resize(
        self, db: Session, *, session_id: str, role: BookingRole, new_capacity: int
    ) -> None:
        """
        Change a role's capacity, shifting remaining seats by the same delta.

        A single conditional update: it refuses to go below the number of
        seats currently booked.
        """
        role = BookingRole(role)
        updated = (
            db.query(SessionSeat)
            .filter(
                self._row_filter(session_id, role),
                SessionSeat.capacity - SessionSeat.seats_remaining <= new_capacity,
            )
            .update(
                {
                    "seats_remaining": SessionSeat.seats_remaining
                    + (new_capacity - SessionSeat.capacity),
                    "capacity": new_capacity,
                    "updated_at": func.now(),
                },
                synchronize_session=False,
            )
        )
        if updated == 1:
            return

        counts = self._read_counts(db, session_id, role)
        if counts is None:
            raise RoleNotOffered(
                f"This session does not take {role.value} bookings.",
                details={"session_id": session_id, "role": role.value},
            )
        capacity, remaining = counts
        raise CapacityBelowDemand(
            f"Capacity for {role.value}s cannot be lower than the {capacity - remaining} seats already booked.",
            details={
                "session_id": session_id,
                "role": role.value,
                "booked": capacity - remaining,
                "requested_capacity": new_capacity,
            },
        )

    def drop_role(self, db: Session, *, session_id: str, role: BookingRole) -> None:
        """Stop offering a role. Only allowed while none of its seats are booked."""
        role = BookingRole(role)
        deleted = (
            db.query(SessionSeat)
            .filter(
                self._row_filter(session_id, role),
                SessionSeat.seats_remaining == SessionSeat.capacity,
            )
            .delete(synchronize_session=False)
        )
        if deleted == 1:
            return

        counts = self._read_counts(db, session_id, role)
        if counts is None:
            return
        capacity, remaining = counts
        raise CapacityBelowDemand(
            f"Cannot stop offering {role.value} places while {capacity - remaining} are booked.",
            details={"session_id": session_id, "role": role.value, "booked": capacity - remaining},
        )

    def delete_for_session(self, db: Session, *, session_id: str) -> int:
        return (
            db.query(SessionSeat)
            .filter(SessionSeat.session_id == session_id)
            .delete(synchronize_session=False)
        )

    def live_booking_count(self, db: Session, *, session_id: str, role: BookingRole) -> int:
        return db.query(func.count(Booking.id)).filter(
            Booking.session_id == session_id,
            Booking.role == BookingRole(role).value,
        ).scalar() or 0

    def reconcile(self, db: Session) -> List[dict]:
        """
        Integrity sweep: recompute every seat row from its live bookings.

        Live bookings are the source of truth. Each row is read before its
        bookings are counted and rewritten with a guarded update, so a row
        that changed concurrently is skipped and picked up by the next sweep.

        Returns: the corrections that were applied
        """
        corrections = []
        keys = db.query(SessionSeat.session_id, SessionSeat.role).all()

        for session_id, role in keys:
            counts = self._read_counts(db, session_id, role)
            if counts is None:
                continue
            capacity, observed = counts
            live = self.live_booking_count(db, session_id=session_id, role=role)
            expected = capacity - live

            if expected == observed:
                continue

            if expected < 0:
                logger.critical(
                    f"Session {session_id} has {live} live {role} bookings for {capacity} seats",
                    extra={"session_id": session_id, "role": role, "live": live, "capacity": capacity},
                )
                expected = 0

            updated = (
                db.query(SessionSeat)
                .filter(
                    self._row_filter(session_id, role),
                    SessionSeat.seats_remaining == observed,
                )
                .update(
                    {"seats_remaining": expected, "updated_at": func.now()},
                    synchronize_session=False,
                )
            )
            if updated == 1:
                logger.error(
                    f"Seat drift corrected for session {session_id} ({role}): "
                    f"{observed} -> {expected} remaining",
                    extra={"session_id": session_id, "role": role},
                )
                corrections.append(
                    {
                        "session_id": session_id,
                        "role": role,
                        "capacity": capacity,
                        "live_bookings": live,
                        "seats_remaining_before": observed,
                        "seats_remaining_after": expected,
                    }
                )

        db.commit()
        return corrections


# Singleton instance
seat_ledger = CRUDSeatLedger()
