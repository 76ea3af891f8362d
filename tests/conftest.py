"""Shared fixtures: an in-memory database, a record store and an API client."""

import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from verdica.app import app
from verdica.database import Base, get_db, init_db
from verdica.store import RecordStore
from verdica.trial_service import TrialService


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db) -> RecordStore:
    return RecordStore(db)


@pytest.fixture
def trial_service(store) -> TrialService:
    return TrialService(store, rng=random.Random(1234), panel_size=3)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_post(store: RecordStore, user_id: int, likes: int = 0, accusations: int = 0,
              content: str = "hello"):
    """Create a post and bump its counters to the given values."""
    post = store.create_post(user_id, content)
    for _ in range(likes):
        store.increment_post_counter(post.id, "likes")
    for _ in range(accusations):
        store.increment_post_counter(post.id, "accusations")
    return store.get_post(post.id)
