import os
from datetime import date

import pytest

# Must be set before the app (and its Settings) is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tripplanner.main import app
from tripplanner.db import Base, get_db, enable_sqlite_foreign_keys
from tripplanner.models import Trip, Restaurant
from tripplanner.services.slot_store import SlotAssignmentStore

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# StaticPool keeps one in-memory connection shared by the client and db_session
engine = enable_sqlite_foreign_keys(create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup and assertions."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return SlotAssignmentStore(db_session)


@pytest.fixture
def trip(db_session):
    """A three-day trip, 2024-04-01..2024-04-03."""
    t = Trip(name="Tokyo Spring", city="tokyo", start_date=date(2024, 4, 1), end_date=date(2024, 4, 3))
    db_session.add(t)
    db_session.commit()
    db_session.refresh(t)
    return t


@pytest.fixture
def make_restaurant(db_session):
    def _make(name: str, tabelog_url: str | None = None) -> Restaurant:
        r = Restaurant(name=name, tabelog_url=tabelog_url, city="tokyo")
        db_session.add(r)
        db_session.commit()
        db_session.refresh(r)
        return r
    return _make


import fakeredis
import fakeredis.aioredis
from tripplanner.infra import redis_client


@pytest.fixture(autouse=True)
def mock_redis():
    server = fakeredis.FakeServer()
    fake = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    redis_client._redis_async = fake
    yield fake
    redis_client._redis_async = None
