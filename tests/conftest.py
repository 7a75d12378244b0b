import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kore.core.relationship_store import SqlRelationshipStore
from kore.core.relationships import RelationshipManager
from kore.database import Base, make_engine

# Register every table on Base.metadata
from kore.models import audit_log, block, mute, user  # noqa: F401
from kore.models.user import User


class FakeClock:
    """Settable clock so expiry can be tested without sleeping."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def test_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_session_maker(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db(test_session_maker):
    session = test_session_maker()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory creating committed users with unique names."""

    def _make_user(name="Test User"):
        suffix = uuid.uuid4().hex[:8]
        u = User(
            name=name,
            username=f"user_{suffix}",
            email=f"user_{suffix}@example.com",
        )
        db.add(u)
        db.commit()
        db.refresh(u)
        return u

    return _make_user


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(db):
    return SqlRelationshipStore(db)


@pytest.fixture
def manager(store, clock):
    return RelationshipManager(store, clock=clock)


@pytest.fixture
def operational_error():
    """Stand-in for any session method while the database is unreachable."""

    def _raise(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    return _raise
