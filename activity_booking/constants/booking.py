# activity_booking/constants/booking.py
"""
Constants and enumerations shared by the booking engine.

Provides type-safe values to replace hardcoded strings throughout the codebase.
"""

from enum import Enum


# A volunteer with at least this many attended volunteer bookings is "experienced".
EXPERIENCED_VOLUNTEER_THRESHOLD = 5

# Bounded retries for a contended seat compare-and-swap before giving up with Busy.
SEAT_CAS_MAX_RETRIES = 5

# Bounded retries for the featured-session swap when a concurrent swap wins.
FEATURED_SWAP_MAX_RETRIES = 3

# Bounded retries for recording a read when other recipients write read-state concurrently.
READ_STATE_MAX_RETRIES = 5


class BookingRole(str, Enum):
    """Role a person plays in a booked session."""
    PARTICIPANT = "participant"
    VOLUNTEER = "volunteer"


class PersonRole(str, Enum):
    """Role of a person account, as supplied by the identity service."""
    PARTICIPANT = "participant"
    VOLUNTEER = "volunteer"
    STAFF = "staff"


class MobilityStatus(str, Enum):
    """Mobility status recorded on a participant profile during onboarding."""
    UNRESTRICTED = "can walk"
    LIMITED = "cannot walk long distances"
    WHEELCHAIR = "cannot walk"

    @property
    def requires_accessible_venue(self) -> bool:
        return self in (MobilityStatus.LIMITED, MobilityStatus.WHEELCHAIR)


class SessionCategory(str, Enum):
    """Programme a session belongs to."""
    MOVEMENT = "Movement"
    CREATIVE = "Creative"
    CAREGIVER = "Caregiver sessions"


class SessionCadence(str, Enum):
    WEEKLY = "Weekly"
    FORTNIGHTLY = "Fortnightly"
    MONTHLY = "Monthly"
    ONE_OFF = "One-off"


class Membership(str, Enum):
    """How often the person intends to attend, captured at booking time."""
    AD_HOC = "Ad hoc"
    ONCE_A_WEEK = "Once a week"
    TWICE_A_WEEK = "Twice a week"
    THREE_OR_MORE = "Three or more"
    WEEKLY = "Weekly"


class AudienceSelector(str, Enum):
    """Named recipient rules for notifications."""
    ALL = "all"
    PARTICIPANTS = "participants"
    VOLUNTEERS = "volunteers"
    EXPERIENCED_VOLUNTEERS = "experienced_volunteers"


class NotificationType(str, Enum):
    REMINDER = "reminder"
    SIGNUP_REQUEST = "signup_request"
    ANNOUNCEMENT = "announcement"
