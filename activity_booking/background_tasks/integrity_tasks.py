# activity_booking/background_tasks/integrity_tasks.py
"""
Background task for seat ledger integrity.

Recomputes every role's remaining seats from its live bookings and corrects
any drift. Runs on the scheduler every INTEGRITY_SWEEP_INTERVAL_MINUTES and
can be triggered through the internal API.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from activity_booking.crud.crud_seat import seat_ledger
from activity_booking.db.session import SessionLocal

logger = logging.getLogger(__name__)


def run_integrity_sweep(db: Optional[Session] = None) -> List[dict]:
    """
    Background task: reconcile seats_remaining with live bookings.

    Uses its own database session unless one is passed in.

    Returns: the corrections that were applied
    """
    owns_session = db is None
    if owns_session:
        db = SessionLocal()

    try:
        corrections = seat_ledger.reconcile(db)
        if corrections:
            logger.error(f"Integrity sweep corrected {len(corrections)} seat row(s)")
        else:
            logger.info("Integrity sweep found no seat drift")
        return corrections

    except Exception:
        db.rollback()
        raise

    finally:
        if owns_session:
            db.close()
