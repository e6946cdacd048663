# activity_booking/schemas/booking.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictBool

from activity_booking.constants.booking import BookingRole, Membership


class BookingCreate(BaseModel):
    """Details a person supplies when registering for a session."""
    role: BookingRole = BookingRole.PARTICIPANT
    # Defaults to the name on the caller's profile
    name: Optional[str] = Field(default=None, min_length=1)
    membership: Membership = Membership.AD_HOC
    accessibility_needed: bool = False
    payment_needed: bool = False
    notes: str = Field(default="", max_length=2000)


class Booking(BaseModel):
    id: str
    session_id: str
    person_id: Optional[str] = None
    name: str
    email: str
    role: BookingRole
    membership: Membership
    accessibility_needed: bool
    payment_needed: bool
    notes: str = ""
    attended: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AttendanceUpdate(BaseModel):
    attended: StrictBool
