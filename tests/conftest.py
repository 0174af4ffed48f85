"""Shared fixtures: in-memory database, sessions, API client and roster builders."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db, get_settings
from main import app
from models import Participant, Meeting, Rating


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient bound to the in-memory database (lifespan is not run)."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Passphrase": get_settings().admin_passphrase}


def make_participant(participant_id, *categories, **fields):
    """Transient participant for the pure services."""
    return Participant(
        id=participant_id,
        name=fields.pop("name", participant_id.upper()),
        categories=list(categories),
        avg_score=fields.pop("avg_score", 0.0),
        partner_id=fields.pop("partner_id", None),
        **fields,
    )


def make_meeting(p1, p2, round_number, table_number=1, ratings=()):
    """Transient meeting, optionally with (from_id, to_id, score) ratings."""
    meeting = Meeting(
        id=f"m-{p1}-{p2}-{round_number}",
        participant1_id=p1,
        participant2_id=p2,
        round_number=round_number,
        table_number=table_number,
        scheduled_time="",
    )
    for from_id, to_id, score in ratings:
        meeting.ratings.append(
            Rating(meeting_id=meeting.id, from_id=from_id, to_id=to_id, score=score)
        )
    return meeting
