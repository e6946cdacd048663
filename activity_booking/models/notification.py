# activity_booking/models/notification.py
"""
In-app notifications composed by staff.

Recipients are not stored: the target audience selector is resolved when a
person asks what they can see. Only read-state is kept per person.
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.sql import func

from activity_booking.db.base_class import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=lambda: f"ntf_{uuid.uuid4().hex[:12]}")
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)  # reminder, signup_request, announcement
    target_audience = Column(String(30), nullable=False, index=True)
    session_id = Column(String, ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True)
    read_by = Column(JSON, nullable=False, default=list)
    # Bumped on every read-state write; guards concurrent read_by updates
    read_version = Column(Integer, nullable=False, default=0, server_default=text("0"))

    __table_args__ = (
        Index("idx_notifications_created_at", "created_at"),
        Index("idx_notifications_expires_at", "expires_at"),
    )
