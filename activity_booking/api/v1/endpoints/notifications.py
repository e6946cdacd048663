# activity_booking/api/v1/endpoints/notifications.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from activity_booking.api import deps
from activity_booking.crud import crud_person
from activity_booking.crud.crud_notification import notification as crud_notification
from activity_booking.db.session import get_db
from activity_booking.schemas.notification import Notification as NotificationSchema
from activity_booking.schemas.notification import (
    NotificationCreate,
    RecipientFeed,
    RecipientNotification,
)
from activity_booking.schemas.token import TokenPayload

router = APIRouter(tags=["Notifications"])


@router.post(
    "/notifications",
    response_model=NotificationSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_notification(
    notification_in: NotificationCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Send a notification to a target audience. Recipients are resolved when they read."""
    return crud_notification.create(db, obj_in=notification_in, created_by=current_user.sub)


@router.get("/notifications", response_model=List[NotificationSchema])
def list_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    """Every notification, newest first, including expired ones."""
    return crud_notification.get_multi_newest(db, skip=skip, limit=limit)


@router.get("/notifications/me", response_model=RecipientFeed)
def my_notifications(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Notifications currently visible to the caller, newest first."""
    person = crud_person.person.ensure_known(db, identity=current_user)
    visible = crud_notification.get_for_recipient(db, person=person)

    notifications = [
        RecipientNotification(
            id=notification.id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            session_id=notification.session_id,
            created_at=notification.created_at,
            expires_at=notification.expires_at,
            is_read=is_read,
        )
        for notification, is_read in visible
    ]
    unread_count = sum(1 for item in notifications if not item.is_read)
    return RecipientFeed(notifications=notifications, unread_count=unread_count)


@router.post("/notifications/{notificationId}/read", response_model=RecipientNotification)
def mark_notification_read(
    notificationId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    person = crud_person.person.ensure_known(db, identity=current_user)
    notification = crud_notification.get(db, id=notificationId)
    if not notification or not crud_notification.is_visible_to(
        db, notification=notification, person=person
    ):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        )

    notification = crud_notification.mark_read(db, db_obj=notification, person_id=person.id)
    return RecipientNotification(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        session_id=notification.session_id,
        created_at=notification.created_at,
        expires_at=notification.expires_at,
        is_read=True,
    )


@router.delete("/notifications/{notificationId}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notificationId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.require_staff),
):
    if not crud_notification.remove(db, id=notificationId):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        )
