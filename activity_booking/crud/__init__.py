# activity_booking/crud/__init__.py

from .crud_booking import booking
from .crud_person import person
from .crud_seat import seat_ledger
from .crud_session import session

# crud_notification depends on services.audience_resolver, which imports from
# this package; import it as activity_booking.crud.crud_notification.
