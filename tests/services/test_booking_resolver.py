import threading
from dataclasses import replace
from datetime import date, time

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from activity_booking.constants.booking import BookingRole, MobilityStatus
from activity_booking.core.exceptions import (
    AccessibilityMismatch,
    AlreadyBooked,
    Busy,
    NotBooked,
    NotFound,
    RoleNotOffered,
    SessionFull,
    TimingClash,
)
from activity_booking.crud import crud_booking
from activity_booking.crud.crud_seat import seat_ledger
from activity_booking.schemas.booking import BookingCreate
from activity_booking.services.booking_resolver import booking_resolver
from tests.utils import make_actor


def seats_remaining(db: Session, session_id: str, role=BookingRole.PARTICIPANT) -> int:
    return seat_ledger._read_counts(db, session_id, role)[1]


def register(db: Session, session_id: str, name: str, role=BookingRole.PARTICIPANT, **actor_kwargs):
    return booking_resolver.register(
        db,
        actor=make_actor(name, **actor_kwargs),
        session_id=session_id,
        obj_in=BookingCreate(role=role),
    )


def unregister(db: Session, session_id: str, name: str, role=BookingRole.PARTICIPANT):
    booking_resolver.unregister(
        db, actor_email=f"{name}@example.org", session_id=session_id, role=role
    )


def test_two_seat_session_scenario(db_session: Session, create_session):
    """
    Fill a two-seat session, turn a third person away, then admit them once
    a seat is freed.
    """
    s1 = create_session(capacities={BookingRole.PARTICIPANT: 2})

    register(db_session, s1.id, "alice")
    assert seats_remaining(db_session, s1.id) == 1
    register(db_session, s1.id, "bob")
    assert seats_remaining(db_session, s1.id) == 0

    with pytest.raises(SessionFull):
        register(db_session, s1.id, "carol")
    assert seats_remaining(db_session, s1.id) == 0

    unregister(db_session, s1.id, "alice")
    assert seats_remaining(db_session, s1.id) == 1
    register(db_session, s1.id, "carol")
    assert seats_remaining(db_session, s1.id) == 0


def test_seats_always_match_live_bookings(db_session: Session, create_session):
    session = create_session(capacities={BookingRole.PARTICIPANT: 3})
    steps = [
        ("register", "alice"),
        ("register", "bob"),
        ("unregister", "alice"),
        ("register", "carol"),
        ("register", "dave"),
        ("unregister", "bob"),
        ("unregister", "dave"),
        ("register", "alice"),
    ]

    for action, name in steps:
        if action == "register":
            register(db_session, session.id, name)
        else:
            unregister(db_session, session.id, name)
        live = crud_booking.booking.count_live(
            db_session, session_id=session.id, role=BookingRole.PARTICIPANT
        )
        assert seats_remaining(db_session, session.id) == 3 - live


def test_concurrent_registrations_never_oversell(session_factory, create_session):
    capacity, attempts = 3, 10
    session_id = create_session(capacities={BookingRole.PARTICIPANT: capacity}).id
    successes = []
    failures = []
    lock = threading.Lock()

    def attempt(name):
        db = session_factory()
        try:
            booking = register(db, session_id, name)
            with lock:
                successes.append(booking.id)
        except SessionFull as e:
            with lock:
                failures.append(e)
        finally:
            db.close()

    threads = [threading.Thread(target=attempt, args=(f"person{i}",)) for i in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(successes) == capacity
    assert len(failures) == attempts - capacity
    db = session_factory()
    try:
        assert seats_remaining(db, session_id) == 0
        assert crud_booking.booking.count_live(
            db, session_id=session_id, role=BookingRole.PARTICIPANT
        ) == capacity
    finally:
        db.close()


@pytest.mark.parametrize("first, second", [("a", "b"), ("b", "a")])
def test_overlapping_sessions_clash_in_either_order(db_session: Session, create_session, first, second):
    sessions = {
        "a": create_session(title="A", start_time=time(10, 0), end_time=time(11, 0)),
        "b": create_session(title="B", start_time=time(10, 30), end_time=time(11, 30)),
    }

    register(db_session, sessions[first].id, "alice")
    with pytest.raises(TimingClash) as excinfo:
        register(db_session, sessions[second].id, "alice")

    assert excinfo.value.details["clashing_session_id"] == sessions[first].id
    assert seats_remaining(db_session, sessions[second].id) == 10


def test_back_to_back_and_other_day_sessions_do_not_clash(db_session: Session, create_session):
    morning = create_session(start_time=time(10, 0), end_time=time(11, 0))
    next_slot = create_session(start_time=time(11, 0), end_time=time(12, 0))
    next_day = create_session(date=date(2030, 5, 2), start_time=time(10, 0), end_time=time(11, 0))

    register(db_session, morning.id, "alice")
    register(db_session, next_slot.id, "alice")
    register(db_session, next_day.id, "alice")

    assert len(crud_booking.booking.get_by_email(db_session, email="alice@example.org")) == 3


def test_other_role_on_same_session_counts_as_a_clash(db_session: Session, create_session):
    session = create_session(capacities={BookingRole.PARTICIPANT: 5, BookingRole.VOLUNTEER: 2})
    register(db_session, session.id, "alice", role=BookingRole.VOLUNTEER)

    with pytest.raises(TimingClash):
        register(db_session, session.id, "alice", role=BookingRole.PARTICIPANT)


def test_unregister_twice_releases_the_seat_once(db_session: Session, create_session):
    session = create_session(capacities={BookingRole.PARTICIPANT: 2})
    register(db_session, session.id, "alice")

    unregister(db_session, session.id, "alice")
    with pytest.raises(NotBooked):
        unregister(db_session, session.id, "alice")

    assert seats_remaining(db_session, session.id) == 2


def test_duplicate_booking_is_rejected(db_session: Session, create_session):
    session = create_session()
    register(db_session, session.id, "alice")

    with pytest.raises(AlreadyBooked):
        register(db_session, session.id, "alice")
    assert seats_remaining(db_session, session.id) == 9


def test_locked_database_surfaces_as_busy_and_returns_the_seat(
    db_session: Session, create_session, monkeypatch
):
    session = create_session()

    def locked(*args, **kwargs):
        raise OperationalError("INSERT INTO bookings", {}, Exception("database is locked"))

    monkeypatch.setattr(crud_booking.booking, "add_pending", locked)

    with pytest.raises(Busy):
        register(db_session, session.id, "alice")

    monkeypatch.undo()
    assert seats_remaining(db_session, session.id) == 10
    assert crud_booking.booking.count_live(
        db_session, session_id=session.id, role=BookingRole.PARTICIPANT
    ) == 0


def test_email_is_matched_case_insensitively(db_session: Session, create_session):
    session = create_session()
    booking_resolver.register(
        db_session,
        actor=replace(make_actor("alice"), email="Alice@Example.org "),
        session_id=session.id,
        obj_in=BookingCreate(),
    )

    with pytest.raises(AlreadyBooked):
        register(db_session, session.id, "alice")


def test_unknown_session_and_role_not_offered(db_session: Session, create_session):
    session = create_session(capacities={BookingRole.PARTICIPANT: 2})

    with pytest.raises(NotFound):
        register(db_session, "ses_missing", "alice")
    with pytest.raises(RoleNotOffered):
        register(db_session, session.id, "alice", role=BookingRole.VOLUNTEER)


@pytest.mark.parametrize(
    "mobility_status", [MobilityStatus.WHEELCHAIR, MobilityStatus.LIMITED]
)
def test_participant_needing_access_is_kept_off_inaccessible_sessions(
    db_session: Session, create_session, mobility_status
):
    session = create_session(wheelchair_accessible=False)

    with pytest.raises(AccessibilityMismatch):
        register(db_session, session.id, "alice", mobility_status=mobility_status)
    assert seats_remaining(db_session, session.id) == 10


def test_accessibility_rules_skip_volunteers_and_accessible_sessions(
    db_session: Session, create_session
):
    inaccessible = create_session(
        wheelchair_accessible=False,
        capacities={BookingRole.PARTICIPANT: 5, BookingRole.VOLUNTEER: 2},
    )
    accessible = create_session(date=date(2030, 5, 2), wheelchair_accessible=True)

    register(
        db_session,
        inaccessible.id,
        "alice",
        role=BookingRole.VOLUNTEER,
        mobility_status=MobilityStatus.WHEELCHAIR,
    )
    register(db_session, accessible.id, "alice", mobility_status=MobilityStatus.WHEELCHAIR)
    register(db_session, inaccessible.id, "bob", mobility_status=MobilityStatus.UNRESTRICTED)


def test_booking_keeps_the_details_given(db_session: Session, create_session):
    session = create_session()

    booking = booking_resolver.register(
        db_session,
        actor=make_actor("alice"),
        session_id=session.id,
        obj_in=BookingCreate(name="Alice Jones", accessibility_needed=True, notes="Bring a chair"),
    )

    assert booking.id.startswith("bkg_")
    assert booking.name == "Alice Jones"
    assert booking.email == "alice@example.org"
    assert booking.person_id == "usr_alice"
    assert booking.accessibility_needed is True
    assert booking.attended is False


def test_mark_attended(db_session: Session, create_session):
    session = create_session()
    booking = register(db_session, session.id, "alice")

    updated = booking_resolver.mark_attended(db_session, booking_id=booking.id, attended=True)

    assert updated.attended is True
    with pytest.raises(NotFound):
        booking_resolver.mark_attended(db_session, booking_id="bkg_missing", attended=True)
