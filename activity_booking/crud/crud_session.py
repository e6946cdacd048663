# activity_booking/crud/crud_session.py
"""
Session catalog: scheduling, staff edits, cascade delete and the exclusive
"featured" flag.
"""

import logging
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session as DBSession

from activity_booking.constants.booking import (
    FEATURED_SWAP_MAX_RETRIES,
    BookingRole,
    SessionCategory,
)
from activity_booking.core.exceptions import Busy, HasBookings, NotFound, ValidationError
from activity_booking.crud.base import CRUDBase
from activity_booking.crud.crud_seat import seat_ledger
from activity_booking.models.booking import Booking
from activity_booking.models.notification import Notification
from activity_booking.models.session import Session
from activity_booking.models.session_seat import SessionSeat
from activity_booking.schemas.session import SessionCreate, SessionUpdate

logger = logging.getLogger(__name__)

# Columns a staff edit may explicitly clear
NULLABLE_FIELDS = {"latitude", "longitude", "payment_amount", "contact_staff_id"}


def _column_value(value):
    return value.value if isinstance(value, Enum) else value


class CRUDSession(CRUDBase[Session, SessionCreate, SessionUpdate]):
    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def _validate_schedule(self, start_time: time, end_time: time) -> None:
        if start_time >= end_time:
            raise ValidationError(
                "Start time must be before end time.",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
            )

    def _validate_capacities(self, capacities: Dict[BookingRole, int]) -> None:
        if not capacities:
            raise ValidationError("A session must offer at least one role.")
        for role, capacity in capacities.items():
            if capacity < 1:
                raise ValidationError(
                    f"Capacity for {BookingRole(role).value}s must be at least 1.",
                    details={"role": BookingRole(role).value, "capacity": capacity},
                )

    def _validate_payment(self, payment_required: bool, payment_amount: Optional[Decimal]) -> None:
        if payment_amount is not None and payment_amount < 0:
            raise ValidationError("Payment amount cannot be negative.")
        if payment_required and payment_amount is None:
            raise ValidationError("A payment amount is required when payment is required.")

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_multi_filtered(
        self,
        db: DBSession,
        *,
        role: Optional[BookingRole] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[SessionCategory] = None,
        featured: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Session]:
        query = db.query(self.model)
        if role is not None:
            query = query.filter(self.model.seats.any(SessionSeat.role == BookingRole(role).value))
        if date_from is not None:
            query = query.filter(self.model.date >= date_from)
        if date_to is not None:
            query = query.filter(self.model.date <= date_to)
        if category is not None:
            query = query.filter(self.model.category == _column_value(category))
        if featured is not None:
            query = query.filter(self.model.featured == featured)
        return (
            query.order_by(self.model.date, self.model.start_time)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_featured(self, db: DBSession) -> Optional[Session]:
        return db.query(self.model).filter(self.model.featured == True).first()  # noqa: E712

    def count_bookings(self, db: DBSession, *, session_id: str) -> int:
        return db.query(func.count(Booking.id)).filter(Booking.session_id == session_id).scalar() or 0

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create(self, db: DBSession, *, obj_in: SessionCreate) -> Session:
        """Publish a session: assign identity, open every seat, not featured."""
        self._validate_schedule(obj_in.start_time, obj_in.end_time)
        self._validate_capacities(obj_in.capacities)
        self._validate_payment(obj_in.payment_required, obj_in.payment_amount)

        obj_in_data = {
            field: _column_value(value)
            for field, value in obj_in.model_dump(exclude={"capacities"}).items()
        }
        try:
            db_obj = self.model(**obj_in_data, featured=False)
            db.add(db_obj)
            db.flush()
            seat_ledger.seed(db, session_id=db_obj.id, capacities=obj_in.capacities)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(db_obj)

        logger.info(
            f"Session {db_obj.id} scheduled for {db_obj.date} {db_obj.start_time}-{db_obj.end_time}",
            extra={"session_id": db_obj.id, "roles": db_obj.roles},
        )
        return db_obj

    def update(self, db: DBSession, *, db_obj: Session, obj_in: SessionUpdate) -> Session:
        """
        Partial staff edit.

        Capacity changes go through the ledger so remaining seats shift by the
        same delta; shrinking below the booked count raises CapacityBelowDemand
        and leaves the session untouched.
        """
        update_data = obj_in.model_dump(exclude_unset=True)
        capacities = update_data.pop("capacities", None)
        update_data = {
            field: _column_value(value)
            for field, value in update_data.items()
            if value is not None or field in NULLABLE_FIELDS
        }

        self._validate_schedule(
            update_data.get("start_time", db_obj.start_time),
            update_data.get("end_time", db_obj.end_time),
        )
        if "payment_required" in update_data or "payment_amount" in update_data:
            self._validate_payment(
                update_data.get("payment_required", db_obj.payment_required),
                update_data.get("payment_amount", db_obj.payment_amount),
            )
        if capacities is not None:
            self._validate_capacities(capacities)

        try:
            for field, value in update_data.items():
                setattr(db_obj, field, value)

            if capacities is not None:
                current = {
                    seat.role: seat.capacity
                    for seat in seat_ledger.get_by_session(db, session_id=db_obj.id)
                }
                wanted = {BookingRole(role).value: capacity for role, capacity in capacities.items()}

                for role in current.keys() - wanted.keys():
                    seat_ledger.drop_role(db, session_id=db_obj.id, role=role)
                for role, capacity in wanted.items():
                    if role not in current:
                        seat_ledger.seed(db, session_id=db_obj.id, capacities={role: capacity})
                    elif current[role] != capacity:
                        seat_ledger.resize(
                            db, session_id=db_obj.id, role=role, new_capacity=capacity
                        )

            db.add(db_obj)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(db_obj)

        logger.info(f"Session {db_obj.id} updated", extra={"session_id": db_obj.id})
        return db_obj

    def remove(self, db: DBSession, *, id: str, cascade: bool = False) -> int:
        """
        Delete a session.

        Refuses with HasBookings while bookings exist unless ``cascade`` is set;
        with cascade, bookings, seat rows and the session go in one transaction.
        Without cascade no booking is ever deleted: one that lands after the
        count still blocks the delete through its foreign key.

        Returns: the number of bookings removed
        """
        db_obj = self.get(db, id=id)
        if not db_obj:
            raise NotFound("Session not found.", details={"session_id": id})

        booking_count = self.count_bookings(db, session_id=id)
        if booking_count and not cascade:
            raise HasBookings(
                f"This session has {booking_count} booking(s). Confirm to delete them as well.",
                details={"session_id": id, "bookings": booking_count},
            )

        try:
            deleted_bookings = 0
            if cascade:
                deleted_bookings = (
                    db.query(Booking)
                    .filter(Booking.session_id == id)
                    .delete(synchronize_session=False)
                )
            db.query(Notification).filter(Notification.session_id == id).update(
                {"session_id": None}, synchronize_session=False
            )
            seat_ledger.delete_for_session(db, session_id=id)
            db.query(self.model).filter(self.model.id == id).delete(synchronize_session=False)
            db.commit()
        except IntegrityError:
            db.rollback()
            late_count = self.count_bookings(db, session_id=id)
            logger.info(
                f"Session {id} delete refused: {late_count} booking(s) arrived after the check",
                extra={"session_id": id},
            )
            raise HasBookings(
                f"This session has {late_count} booking(s). Confirm to delete them as well.",
                details={"session_id": id, "bookings": late_count},
            )
        except Exception:
            db.rollback()
            raise
        db.expunge_all()

        logger.info(
            f"Session {id} deleted with {deleted_bookings} booking(s)",
            extra={"session_id": id, "cascade": cascade},
        )
        return deleted_bookings

    def set_featured(self, db: DBSession, *, id: str) -> Session:
        """
        Make ``id`` the only featured session.

        Clearing the previous holder and setting the new one commit as a single
        transaction. The partial unique index on ``featured`` turns a concurrent
        swap into an IntegrityError, which is retried a bounded number of times.
        """
        for attempt in range(1, FEATURED_SWAP_MAX_RETRIES + 1):
            if db.query(self.model.id).filter(self.model.id == id).first() is None:
                raise NotFound("Session not found.", details={"session_id": id})
            try:
                db.query(self.model).filter(
                    self.model.featured == True, self.model.id != id  # noqa: E712
                ).update({"featured": False}, synchronize_session=False)
                db.query(self.model).filter(self.model.id == id).update(
                    {"featured": True}, synchronize_session=False
                )
                db.commit()
                break
            except (IntegrityError, OperationalError) as e:
                db.rollback()
                logger.warning(
                    f"Featured swap to {id} conflicted, attempt {attempt}/{FEATURED_SWAP_MAX_RETRIES}: {e}"
                )
        else:
            raise Busy("Another featured change is in progress, please try again.")

        db_obj = self.get(db, id=id)
        db.refresh(db_obj)
        logger.info(f"Session {id} is now featured", extra={"session_id": id})
        return db_obj

    def clear_featured(self, db: DBSession, *, id: str) -> bool:
        """Unfeature ``id`` if it is the featured session; otherwise a no-op."""
        cleared = (
            db.query(self.model)
            .filter(self.model.id == id, self.model.featured == True)  # noqa: E712
            .update({"featured": False}, synchronize_session=False)
        )
        db.commit()
        if cleared:
            logger.info(f"Session {id} is no longer featured", extra={"session_id": id})
        return bool(cleared)


session = CRUDSession(Session)
