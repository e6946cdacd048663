# activity_booking/schemas/audience.py
from typing import List

from pydantic import BaseModel

from activity_booking.constants.booking import AudienceSelector
from activity_booking.schemas.person import PersonSummary


class AudiencePreview(BaseModel):
    """Recipient preview shown before a notification is sent."""
    selector: AudienceSelector
    count: int
    people: List[PersonSummary]


class ExperiencedVolunteer(BaseModel):
    id: str
    name: str
    email: str
    attended_count: int
