# tests/conftest.py

import os

# Settings are read at import time; keep startup side effects out of tests.
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL_LOCAL"] = "sqlite:///./activity_booking_unused.db"

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from starlette.testclient import TestClient  # noqa: E402

from activity_booking.api import deps  # noqa: E402
from activity_booking.constants.booking import PersonRole  # noqa: E402
from activity_booking.crud import crud_session  # noqa: E402
from activity_booking.db.session import build_engine, get_db, init_db  # noqa: E402
from activity_booking.main import app  # noqa: E402
from activity_booking.schemas.token import TokenPayload  # noqa: E402
from tests.utils import make_session_in, make_token  # noqa: E402


# --- Test Database Setup ---
@pytest.fixture(scope="function")
def engine(tmp_path):
    """A fresh SQLite file per test so threaded tests see real locking."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# --- Domain helpers ---
@pytest.fixture
def create_session(db_session):
    """Publish a session through the catalog; keyword arguments override the defaults."""

    def _create(**overrides):
        return crud_session.session.create(db_session, obj_in=make_session_in(**overrides))

    return _create


# --- Mock Dependencies Setup ---
class AuthState:
    """Holds the identity the overridden auth dependency returns."""

    def __init__(self):
        self.user = make_token("staffer", role=PersonRole.STAFF)

    def login(self, name: str, role=PersonRole.PARTICIPANT, mobility_status=None) -> TokenPayload:
        self.user = make_token(name, role=role, mobility_status=mobility_status)
        return self.user

    def as_staff(self) -> TokenPayload:
        return self.login("staffer", role=PersonRole.STAFF)


@pytest.fixture(scope="function")
def auth():
    return AuthState()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def client(session_factory, auth):
    """
    Provides a TestClient backed by the per-test database, with authentication
    mocked through the `auth` fixture. Each request gets its own DB session.
    """

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_current_user] = lambda: auth.user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def raw_client(session_factory):
    """A TestClient with real JWT and internal-key checks."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

