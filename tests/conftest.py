"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.shared_types import Status
from src.db.locks import GameLocks
from src.db.schema import Base
from src.derby.game import Game
from tests.helpers import ScriptedRandom, build_game

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def rng() -> ScriptedRandom:
    return ScriptedRandom(seed=1234)


@pytest.fixture
def locks() -> GameLocks:
    """Fresh lock registry, so tests never share locks with each other."""
    return GameLocks()


@pytest.fixture
def waiting_game(rng: ScriptedRandom) -> Game:
    return build_game(rng)


@pytest.fixture
def started_game(rng: ScriptedRandom) -> Game:
    """Four humans, round 1 dealt. Dealer is seat 0, so seat 1 rolls first."""
    game = build_game(rng)
    game.start()
    assert game.status == Status.IN_PROGRESS
    return game
