# activity_booking/schemas/token.py
from typing import Optional

from pydantic import BaseModel, Field

from activity_booking.constants.booking import MobilityStatus, PersonRole


class TokenPayload(BaseModel):
    """The authenticated identity tuple issued by the identity service."""
    sub: str  # "sub" is the standard claim for subject (person ID)
    email: str
    name: str = ""
    role: PersonRole
    # Camel-cased claims are mapped onto snake_case attributes
    mobility_status: Optional[MobilityStatus] = Field(default=None, alias="mobilityStatus")
    onboarding_complete: bool = Field(default=False, alias="onboardingComplete")
    exp: Optional[int] = None  # Standard claim for expiration time

    model_config = {
        "populate_by_name": True,  # Allow populating by alias
        "from_attributes": True,
    }

    @property
    def is_staff(self) -> bool:
        return self.role == PersonRole.STAFF
