# activity_booking/models/booking.py
"""
Booking model: a person's reservation against one role of one session.

Unregistering hard-deletes the row, so the unique constraint below is the
"at most one live booking per (session, email, role)" rule.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from activity_booking.db.base_class import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=lambda: f"bkg_{uuid.uuid4().hex[:12]}")
    session_id = Column(String, ForeignKey("sessions.id"), nullable=False, index=True)
    person_id = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    role = Column(String(20), nullable=False)  # participant, volunteer
    membership = Column(String(20), nullable=False)
    accessibility_needed = Column(Boolean, nullable=False, server_default=text("false"))
    payment_needed = Column(Boolean, nullable=False, server_default=text("false"))
    notes = Column(Text, nullable=False, server_default="")
    attended = Column(Boolean, nullable=False, server_default=text("false"), default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    session = relationship("Session", lazy="joined")

    __table_args__ = (
        UniqueConstraint("session_id", "email", "role", name="unique_booking_session_email_role"),
    )
