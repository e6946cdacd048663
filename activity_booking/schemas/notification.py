# activity_booking/schemas/notification.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from activity_booking.constants.booking import AudienceSelector, NotificationType


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType
    target_audience: AudienceSelector = AudienceSelector.ALL
    session_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class Notification(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType
    target_audience: AudienceSelector
    session_id: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    read_by: List[str] = []

    model_config = {"from_attributes": True}


class RecipientNotification(BaseModel):
    """A notification as seen by one recipient."""
    id: str
    title: str
    message: str
    type: NotificationType
    session_id: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_read: bool

    model_config = {"from_attributes": True}


class RecipientFeed(BaseModel):
    notifications: List[RecipientNotification]
    unread_count: int
