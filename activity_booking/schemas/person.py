# activity_booking/schemas/person.py
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from activity_booking.constants.booking import MobilityStatus, PersonRole


class PersonUpsert(BaseModel):
    """Profile pushed by the identity service."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: PersonRole
    mobility_status: Optional[MobilityStatus] = None
    preferences: List[str] = []
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    onboarding_complete: bool = False


class Person(BaseModel):
    id: str
    name: str
    email: str
    role: PersonRole
    mobility_status: Optional[MobilityStatus] = None
    preferences: List[str] = []
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    onboarding_complete: bool = False

    model_config = {"from_attributes": True}


class PersonSummary(BaseModel):
    id: str
    name: str
    email: str
    role: PersonRole

    model_config = {"from_attributes": True}
