# activity_booking/crud/crud_person.py
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from activity_booking.constants.booking import PersonRole
from activity_booking.core.exceptions import ValidationError
from activity_booking.crud.base import CRUDBase
from activity_booking.crud.crud_booking import normalize_email
from activity_booking.models.person import Person
from activity_booking.schemas.person import PersonUpsert

logger = logging.getLogger(__name__)


class CRUDPerson(CRUDBase[Person, PersonUpsert, PersonUpsert]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[Person]:
        return db.query(Person).filter(Person.email == normalize_email(email)).first()

    def get_multi_by_role(
        self,
        db: Session,
        *,
        role: Optional[PersonRole] = None,
        skip: int = 0,
        limit: Optional[int] = 500,
    ) -> List[Person]:
        query = db.query(Person)
        if role is not None:
            query = query.filter(Person.role == PersonRole(role).value)
        return query.order_by(Person.name.asc()).offset(skip).limit(limit).all()

    def upsert(self, db: Session, *, id: str, obj_in: PersonUpsert) -> Person:
        """Create or replace the profile pushed by the identity service."""
        data = obj_in.model_dump()
        data["email"] = normalize_email(data["email"])
        data["role"] = obj_in.role.value
        data["mobility_status"] = obj_in.mobility_status.value if obj_in.mobility_status else None

        db_obj = self.get(db, id=id)
        if db_obj is None:
            db_obj = Person(id=id, **data)
            db.add(db_obj)
            action = "created"
        else:
            for field, value in data.items():
                setattr(db_obj, field, value)
            action = "updated"

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError(
                "Email already belongs to another person.",
                details={"person_id": id, "email": data["email"]},
            )
        db.refresh(db_obj)
        logger.info(f"Person {id} {action} from identity sync", extra={"person_id": id})
        return db_obj

    def ensure_known(self, db: Session, *, identity) -> Person:
        """
        Return the directory entry for an authenticated identity tuple,
        recording it first if the identity service has not synced it yet.
        """
        db_obj = self.get(db, id=identity.sub) or self.get_by_email(db, email=identity.email)
        if db_obj is not None:
            return db_obj
        return self.upsert(
            db,
            id=identity.sub,
            obj_in=PersonUpsert(
                name=identity.name or identity.email.split("@")[0],
                email=identity.email,
                role=identity.role,
                mobility_status=identity.mobility_status,
                onboarding_complete=identity.onboarding_complete,
            ),
        )


person = CRUDPerson(Person)
