# activity_booking/api/v1/endpoints/people.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from activity_booking.api import deps
from activity_booking.constants.booking import PersonRole
from activity_booking.crud import crud_person
from activity_booking.db.session import get_db
from activity_booking.schemas.person import PersonSummary
from activity_booking.schemas.token import TokenPayload

router = APIRouter(tags=["People"])


@router.get("/people", response_model=List[PersonSummary])
def list_people(
    role: Optional[PersonRole] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(500, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Directory listing; `role=staff` feeds the contact and staff-present pickers."""
    return crud_person.person.get_multi_by_role(db, role=role, skip=skip, limit=limit)
