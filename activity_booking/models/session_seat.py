# activity_booking/models/session_seat.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from activity_booking.db.base_class import Base


class SessionSeat(Base):
    """
    Per-role seat ledger row for a session.

    Features:
    - One row per offered role (its presence is what "offers" the role)
    - Remaining seats mutated only through the capacity ledger
    - Database-level validation (0 <= seats_remaining <= capacity)
    """
    __tablename__ = "session_seats"

    session_id = Column(String, ForeignKey("sessions.id"), primary_key=True, index=True)
    role = Column(String(20), primary_key=True)
    capacity = Column(Integer, nullable=False)
    seats_remaining = Column(Integer, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    session = relationship("Session", back_populates="seats")

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="check_seat_capacity_positive"),
        CheckConstraint("seats_remaining >= 0", name="check_seats_remaining_non_negative"),
        CheckConstraint("seats_remaining <= capacity", name="check_seats_remaining_lte_capacity"),
    )
