# tests/utils.py
from datetime import date, time

from activity_booking.constants.booking import BookingRole, PersonRole, SessionCategory
from activity_booking.schemas.session import SessionCreate
from activity_booking.schemas.token import TokenPayload
from activity_booking.services.booking_resolver import BookingActor


def make_session_in(**overrides) -> SessionCreate:
    data = {
        "title": "Chair Yoga",
        "date": date(2030, 5, 1),
        "start_time": time(10, 0),
        "end_time": time(11, 0),
        "location": "Community Hall",
        "category": SessionCategory.MOVEMENT,
        "capacities": {BookingRole.PARTICIPANT: 10},
    }
    data.update(overrides)
    return SessionCreate(**data)


def make_actor(name: str, mobility_status=None) -> BookingActor:
    return BookingActor(
        person_id=f"usr_{name}",
        email=f"{name}@example.org",
        name=name.title(),
        mobility_status=mobility_status,
    )


def make_token(name: str, role=PersonRole.PARTICIPANT, mobility_status=None) -> TokenPayload:
    return TokenPayload(
        sub=f"usr_{name}",
        email=f"{name}@example.org",
        name=name.title(),
        role=role,
        mobility_status=mobility_status,
        onboarding_complete=True,
    )
