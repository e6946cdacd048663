# activity_booking/models/__init__.py
# Import all models to ensure SQLAlchemy can resolve relationships
# Order matters for dependencies - import base models first

from activity_booking.db.base_class import Base
from activity_booking.models.session import Session
from activity_booking.models.session_seat import SessionSeat
from activity_booking.models.booking import Booking
from activity_booking.models.person import Person
from activity_booking.models.notification import Notification
