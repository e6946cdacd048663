# activity_booking/schemas/session.py
import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from activity_booking.constants.booking import BookingRole, SessionCadence, SessionCategory


class SeatSummary(BaseModel):
    role: BookingRole
    capacity: int
    seats_remaining: int

    model_config = {"from_attributes": True}


class Session(BaseModel):
    id: str
    title: str
    description: str = ""
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    location: str
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category: SessionCategory
    cadence: SessionCadence
    image_url: str = ""
    wheelchair_accessible: bool
    payment_required: bool
    payment_amount: Optional[Decimal] = None
    contact_staff_id: Optional[str] = None
    staff_present: List[str] = []
    featured: bool
    roles: List[BookingRole] = []
    seats: List[SeatSummary] = []

    # Legacy flat view for older consumers, derived from the seat rows
    participant_capacity: int = 0
    volunteer_capacity: int = 0
    participant_seats_left: int = 0
    volunteer_seats_left: int = 0

    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}


class SessionCreate(BaseModel):
    title: str = Field(..., min_length=1, json_schema_extra={"example": "Morning Stretch & Tea"})
    description: str = ""
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    location: str = Field(..., min_length=1)
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category: SessionCategory
    cadence: SessionCadence = SessionCadence.ONE_OFF
    image_url: str = ""
    # One entry per offered role, e.g. {"participant": 12, "volunteer": 3}
    capacities: Dict[BookingRole, int]
    wheelchair_accessible: bool = False
    payment_required: bool = False
    payment_amount: Optional[Decimal] = None
    contact_staff_id: Optional[str] = None
    staff_present: List[str] = []


class SessionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    location: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category: Optional[SessionCategory] = None
    cadence: Optional[SessionCadence] = None
    image_url: Optional[str] = None
    # Replaces the offered role set: roles left out stop being offered
    capacities: Optional[Dict[BookingRole, int]] = None
    wheelchair_accessible: Optional[bool] = None
    payment_required: Optional[bool] = None
    payment_amount: Optional[Decimal] = None
    contact_staff_id: Optional[str] = None
    staff_present: Optional[List[str]] = None
