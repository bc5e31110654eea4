"""Root conftest for all tests.

Every test gets its own in-memory SQLite database. StaticPool keeps a single
connection so the schema survives across sessions within one test.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from personal_info.db.models import Base
from personal_info.models.person import PersonRecord
from personal_info.persistence.store import PersonStore

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    """Plain session on the test database; rolled back after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def store(db_session) -> PersonStore:
    return PersonStore(db_session)


@pytest.fixture
def make_person():
    """Build a PersonRecord with sensible defaults."""

    def _make(**overrides) -> PersonRecord:
        values = {
            "name": "Alice",
            "email": "a@a.com",
            "date_of_birth": date(2000, 1, 1),
        }
        values.update(overrides)
        return PersonRecord(**values)

    return _make


@pytest.fixture
def client(engine, session_factory, clock, monkeypatch):
    """TestClient wired to the test database and the fake clock.

    Patches the lazily created engine and session factory in
    personal_info.db.session, so get_session() hands out test sessions.
    """
    import personal_info.db.session as session_module
    from personal_info.api.persons import get_clock
    from personal_info.main import app

    monkeypatch.setattr(session_module, "_engine", engine)
    monkeypatch.setattr(session_module, "_SessionLocal", session_factory)
    app.dependency_overrides[get_clock] = lambda: clock

    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
