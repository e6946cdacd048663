# activity_booking/models/session.py
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from activity_booking.constants.booking import BookingRole
from activity_booking.db.base_class import Base


class Session(Base):
    """
    A single scheduled occurrence of an activity.

    Offered roles and per-role capacity are not stored here: they are the
    ``SessionSeat`` rows owned by the capacity ledger.
    """
    __tablename__ = "sessions"

    id = Column(
        String, primary_key=True, default=lambda: f"ses_{uuid.uuid4().hex[:12]}"
    )
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, server_default="")
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Location; coordinates are stored exactly as supplied by the geocoder
    location = Column(String, nullable=False)
    address = Column(String, nullable=False, server_default="")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    category = Column(String(40), nullable=False, index=True)
    cadence = Column(String(20), nullable=False, server_default="One-off")
    image_url = Column(String, nullable=False, server_default="")

    wheelchair_accessible = Column(Boolean, nullable=False, server_default=text("false"))
    payment_required = Column(Boolean, nullable=False, server_default=text("false"))
    payment_amount = Column(Numeric(10, 2), nullable=True)

    contact_staff_id = Column(String, nullable=True)
    staff_present = Column(JSON, nullable=False, default=list)

    featured = Column(Boolean, nullable=False, server_default=text("false"))

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    seats = relationship(
        "SessionSeat",
        back_populates="session",
        lazy="selectin",
        order_by="SessionSeat.role",
    )

    __table_args__ = (
        # At most one featured session catalog-wide
        Index(
            "uq_sessions_single_featured",
            "featured",
            unique=True,
            postgresql_where=text("featured IS TRUE"),
            sqlite_where=text("featured = 1"),
        ),
    )

    @property
    def roles(self) -> list[str]:
        return [seat.role for seat in self.seats]

    def seat_for(self, role):
        role = BookingRole(role).value
        for seat in self.seats:
            if seat.role == role:
                return seat
        return None

    def _seat_value(self, role: BookingRole, attr: str) -> int:
        seat = self.seat_for(role)
        return getattr(seat, attr) if seat else 0

    # --- Legacy flat view (read-only, derived from the seat rows) ---
    @property
    def participant_capacity(self) -> int:
        return self._seat_value(BookingRole.PARTICIPANT, "capacity")

    @property
    def volunteer_capacity(self) -> int:
        return self._seat_value(BookingRole.VOLUNTEER, "capacity")

    @property
    def participant_seats_left(self) -> int:
        return self._seat_value(BookingRole.PARTICIPANT, "seats_remaining")

    @property
    def volunteer_seats_left(self) -> int:
        return self._seat_value(BookingRole.VOLUNTEER, "seats_remaining")
