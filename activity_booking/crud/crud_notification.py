# activity_booking/crud/crud_notification.py
"""
Notification store: staff-composed notifications and per-recipient read-state.

Recipients are resolved lazily. A notification is visible to a person when
it has not expired and the person belongs to its target audience.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from activity_booking.constants.booking import READ_STATE_MAX_RETRIES
from activity_booking.core.exceptions import Busy, InvalidExpiry, NotFound
from activity_booking.crud.base import CRUDBase
from activity_booking.crud.crud_booking import booking as crud_booking
from activity_booking.models.notification import Notification
from activity_booking.models.person import Person
from activity_booking.models.session import Session as SessionModel
from activity_booking.schemas.notification import NotificationCreate
from activity_booking.services.audience_resolver import audience_resolver

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CRUDNotification(CRUDBase[Notification, NotificationCreate, NotificationCreate]):
    def create(
        self,
        db: Session,
        *,
        obj_in: NotificationCreate,
        created_by: str,
        now: Optional[datetime] = None,
    ) -> Notification:
        now = as_utc(now) or datetime.now(timezone.utc)
        expires_at = as_utc(obj_in.expires_at)
        if expires_at is not None and expires_at <= now:
            raise InvalidExpiry(
                "Expiry must be in the future.",
                details={"expires_at": expires_at.isoformat()},
            )
        if obj_in.session_id and db.get(SessionModel, obj_in.session_id) is None:
            raise NotFound("Linked session not found.", details={"session_id": obj_in.session_id})

        db_obj = Notification(
            title=obj_in.title,
            message=obj_in.message,
            type=obj_in.type.value,
            target_audience=obj_in.target_audience.value,
            session_id=obj_in.session_id,
            created_by=created_by,
            created_at=now,
            expires_at=expires_at,
            read_by=[],
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)

        logger.info(
            f"Notification {db_obj.id} created for audience {db_obj.target_audience}",
            extra={"notification_id": db_obj.id, "created_by": created_by},
        )
        return db_obj

    def get_multi_newest(self, db: Session, *, skip: int = 0, limit: Optional[int] = 100) -> List[Notification]:
        return (
            db.query(Notification)
            .order_by(Notification.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def is_expired(self, notification: Notification, now: Optional[datetime] = None) -> bool:
        now = as_utc(now) or datetime.now(timezone.utc)
        expires_at = as_utc(notification.expires_at)
        return expires_at is not None and expires_at <= now

    def is_visible_to(
        self,
        db: Session,
        *,
        notification: Notification,
        person: Person,
        now: Optional[datetime] = None,
    ) -> bool:
        if self.is_expired(notification, now):
            return False
        return audience_resolver.includes(db, notification.target_audience, person)

    def get_for_recipient(
        self,
        db: Session,
        *,
        person: Person,
        now: Optional[datetime] = None,
    ) -> List[Tuple[Notification, bool]]:
        """Visible notifications for ``person``, newest first, with their read flag."""
        attended_counts = crud_booking.attended_volunteer_counts(db)
        membership = {}
        visible = []
        for notification in self.get_multi_newest(db, limit=None):
            if self.is_expired(notification, now):
                continue
            selector = notification.target_audience
            if selector not in membership:
                membership[selector] = audience_resolver.includes(
                    db, selector, person, attended_counts=attended_counts
                )
            if membership[selector]:
                visible.append((notification, person.id in (notification.read_by or [])))
        return visible

    def mark_read(self, db: Session, *, db_obj: Notification, person_id: str) -> Notification:
        """
        Record that ``person_id`` read the notification. Repeating it is a no-op.

        ``read_by`` is rewritten only while ``read_version`` still holds the
        value it was read with, so concurrent readers never drop each other.
        """
        notification_id = db_obj.id
        for attempt in range(1, READ_STATE_MAX_RETRIES + 1):
            current = (
                db.query(Notification.read_by, Notification.read_version)
                .filter(Notification.id == notification_id)
                .first()
            )
            if current is None:
                raise NotFound("Notification not found.", details={"notification_id": notification_id})
            read_by = list(current.read_by or [])
            if person_id in read_by:
                db.refresh(db_obj)
                return db_obj

            updated = (
                db.query(Notification)
                .filter(
                    Notification.id == notification_id,
                    Notification.read_version == current.read_version,
                )
                .update(
                    {
                        "read_by": read_by + [person_id],
                        "read_version": current.read_version + 1,
                    },
                    synchronize_session=False,
                )
            )
            if updated == 1:
                db.commit()
                db.refresh(db_obj)
                return db_obj

            db.rollback()
            logger.info(
                f"Read-state update for notification {notification_id} lost a race, "
                f"attempt {attempt}/{READ_STATE_MAX_RETRIES}"
            )

        logger.warning(
            f"Read-state update gave up after {READ_STATE_MAX_RETRIES} attempts",
            extra={"notification_id": notification_id, "person_id": person_id},
        )
        raise Busy(
            "The notification is busy, please try again.",
            details={"notification_id": notification_id},
        )


notification = CRUDNotification(Notification)
