"""Shared test fixtures and configuration."""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rollcall.main import app
from rollcall.db.base import Base
from rollcall.db.models import Participant, Survey
from rollcall.api.deps import get_db
from rollcall.core.cache import key_index_cache
from rollcall.core.keys import derive_key_from_name
from rollcall.core.constants import ADMIN_COOKIE_NAME
from rollcall.core.security import create_admin_token
from rollcall.core.utils import new_id


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

ADMIN_NAME = "Front Desk"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Turn off the per-minute route ceilings except in rate limiting tests."""
    from rollcall.core.rate_limit import limiter

    if "rate_limit" in request.keywords:
        limiter.reset()
        limiter.enabled = True
        yield
        limiter.reset()
    else:
        limiter.enabled = False
        yield
    limiter.enabled = False


@pytest.fixture(autouse=True)
def clear_key_index():
    """Each test starts with an empty key -> participant cache."""
    key_index_cache.clear()
    yield
    key_index_cache.clear()


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with a test database."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token():
    """Generate a valid admin JWT token."""
    return create_admin_token(ADMIN_NAME)


@pytest.fixture
def admin_client(client, admin_token):
    """Create a test client with admin cookie already set."""
    client.cookies.set(ADMIN_COOKIE_NAME, admin_token)
    return client


@pytest.fixture
def make_participant(db_session):
    """Factory inserting a participant; the lookup key is derived when a birth date is given."""
    def _make(name="John Smith", birth_date="1990-05-01", **fields):
        now = datetime.now(timezone.utc)
        participant = Participant(
            id=new_id(),
            name=name,
            birth_date=birth_date,
            lookup_key=derive_key_from_name(name, birth_date),
            created_at=now,
            updated_at=now,
            **fields,
        )
        db_session.add(participant)
        db_session.commit()
        db_session.refresh(participant)
        return participant
    return _make


@pytest.fixture
def make_survey(db_session):
    def _make(title="Summer Conference", is_active=True):
        survey = Survey(id=new_id(), title=title, is_active=is_active, created_at=datetime.now(timezone.utc))
        db_session.add(survey)
        db_session.commit()
        db_session.refresh(survey)
        return survey
    return _make
