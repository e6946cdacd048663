# activity_booking/api/v1/endpoints/internals.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from activity_booking.api import deps
from activity_booking.background_tasks.integrity_tasks import run_integrity_sweep
from activity_booking.crud import crud_person
from activity_booking.db.session import get_db
from activity_booking.schemas.person import Person as PersonSchema
from activity_booking.schemas.person import PersonUpsert

router = APIRouter(tags=["Internal"])


@router.put("/internal/people/{personId}", response_model=PersonSchema)
def upsert_person(
    personId: str,
    person_in: PersonUpsert,
    db: Session = Depends(get_db),
    api_key: str = Depends(deps.get_internal_api_key),
):
    """
    Called by the identity service whenever a profile is created or changed.
    """
    return crud_person.person.upsert(db, id=personId, obj_in=person_in)


@router.post("/internal/integrity-sweep")
def trigger_integrity_sweep(
    db: Session = Depends(get_db),
    api_key: str = Depends(deps.get_internal_api_key),
):
    """Run the seat ledger integrity sweep now and report what it corrected."""
    corrections = run_integrity_sweep(db)
    return {"corrected": len(corrections), "corrections": corrections}
