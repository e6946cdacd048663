# activity_booking/models/person.py
"""
Local mirror of person profiles owned by the identity service.

Credentials never live here; the identity service pushes profile changes
through the internal API.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, String, text
from sqlalchemy.sql import func

from activity_booking.db.base_class import Base


class Person(Base):
    __tablename__ = "people"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    role = Column(String(20), nullable=False, index=True)  # participant, volunteer, staff
    mobility_status = Column(String(40), nullable=True)
    preferences = Column(JSON, nullable=False, default=list)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    onboarding_complete = Column(Boolean, nullable=False, server_default=text("false"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
