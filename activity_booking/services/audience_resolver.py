# activity_booking/services/audience_resolver.py
"""
Audience resolution for notifications.

Maps a target-audience selector onto the people it currently covers. The
"experienced volunteer" cohort is derived from booking history: a volunteer
qualifies once their attended volunteer bookings reach
``EXPERIENCED_VOLUNTEER_THRESHOLD``. Attendance is matched by email and
counted across every booking still on record.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from activity_booking.constants.booking import (
    EXPERIENCED_VOLUNTEER_THRESHOLD,
    AudienceSelector,
    PersonRole,
)
from activity_booking.crud.crud_booking import booking as crud_booking
from activity_booking.crud.crud_person import person as crud_person
from activity_booking.models.person import Person

logger = logging.getLogger(__name__)


class AudienceResolver:
    def __init__(self, experienced_threshold: int = EXPERIENCED_VOLUNTEER_THRESHOLD):
        self.experienced_threshold = experienced_threshold

    def experienced_volunteers_with_counts(self, db: Session) -> List[Tuple[Person, int]]:
        """Volunteers at or over the threshold, with their attended counts, most experienced first."""
        counts = crud_booking.attended_volunteer_counts(db)
        volunteers = crud_person.get_multi_by_role(db, role=PersonRole.VOLUNTEER, limit=None)
        qualified = [
            (volunteer, counts.get(volunteer.email, 0))
            for volunteer in volunteers
            if counts.get(volunteer.email, 0) >= self.experienced_threshold
        ]
        return sorted(qualified, key=lambda pair: (-pair[1], pair[0].name))

    def resolve(self, db: Session, selector: AudienceSelector) -> List[Person]:
        """Return every known person covered by ``selector``, ordered by name."""
        selector = AudienceSelector(selector)

        if selector == AudienceSelector.ALL:
            people = crud_person.get_multi_by_role(db, limit=None)
        elif selector == AudienceSelector.PARTICIPANTS:
            people = crud_person.get_multi_by_role(db, role=PersonRole.PARTICIPANT, limit=None)
        elif selector == AudienceSelector.VOLUNTEERS:
            people = crud_person.get_multi_by_role(db, role=PersonRole.VOLUNTEER, limit=None)
        else:
            people = sorted(
                (volunteer for volunteer, _ in self.experienced_volunteers_with_counts(db)),
                key=lambda p: p.name,
            )

        logger.debug(f"Audience {selector.value} resolved to {len(people)} people")
        return people

    def includes(
        self,
        db: Session,
        selector: AudienceSelector,
        person: Person,
        attended_counts: Optional[Dict[str, int]] = None,
    ) -> bool:
        """
        Whether a known ``person`` belongs to ``selector``.

        Applies the same rules as ``resolve`` to a single person. Pass
        ``attended_counts`` to reuse one history query across many checks.
        """
        selector = AudienceSelector(selector)
        role = PersonRole(person.role)

        if selector == AudienceSelector.ALL:
            return True
        if selector == AudienceSelector.PARTICIPANTS:
            return role == PersonRole.PARTICIPANT
        if selector == AudienceSelector.VOLUNTEERS:
            return role == PersonRole.VOLUNTEER

        if role != PersonRole.VOLUNTEER:
            return False
        if attended_counts is None:
            attended_counts = crud_booking.attended_volunteer_counts(db)
        return attended_counts.get(person.email, 0) >= self.experienced_threshold


audience_resolver = AudienceResolver()
