# activity_booking/api/v1/endpoints/audiences.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from activity_booking.api import deps
from activity_booking.constants.booking import AudienceSelector
from activity_booking.db.session import get_db
from activity_booking.schemas.audience import AudiencePreview, ExperiencedVolunteer
from activity_booking.schemas.person import PersonSummary
from activity_booking.schemas.token import TokenPayload
from activity_booking.services.audience_resolver import audience_resolver

router = APIRouter(tags=["Audiences"])


@router.get("/audiences/{selector}", response_model=AudiencePreview)
def preview_audience(
    selector: AudienceSelector,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Who a notification sent to `selector` would currently reach."""
    people = audience_resolver.resolve(db, selector)
    return AudiencePreview(
        selector=selector,
        count=len(people),
        people=[PersonSummary.model_validate(person) for person in people],
    )


@router.get("/volunteers/experienced", response_model=List[ExperiencedVolunteer])
def list_experienced_volunteers(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    return [
        ExperiencedVolunteer(
            id=volunteer.id,
            name=volunteer.name,
            email=volunteer.email,
            attended_count=count,
        )
        for volunteer, count in audience_resolver.experienced_volunteers_with_counts(db)
    ]
