"""Root conftest — shared fixtures for all backend tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure backend/ is on sys.path
_backend_dir = str(Path(__file__).resolve().parent)
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401 — register all models with Base

# Use in-memory SQLite for tests — StaticPool ensures all connections share the same DB
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autoflush=False, expire_on_commit=False)


class FakeAgentGateway:
    """Deterministic stand-in for the external agent."""

    def __init__(self, answer: str = "Emmanuel Macron", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.questions: list[str] = []

    def ask(self, question: str) -> str:
        self.questions.append(question)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture(autouse=True)
def _fast_bcrypt(monkeypatch):
    """Cheapest bcrypt cost so hashing does not dominate test time."""
    from config import settings

    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def db():
    """Yield a test database session."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    return FakeAgentGateway()


@pytest.fixture
def user(db):
    import bcrypt
    from models.user import User

    u = User(
        email="alice@example.com",
        hashed_password=bcrypt.hashpw(b"secret123", bcrypt.gensalt(rounds=4)).decode(),
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def conversation(db, user):
    from models.conversation import Conversation

    c = Conversation(
        user_id=user.id,
        summary="Who is the president of France?...",
        messages=[{"question": "Who is the president of France?", "answer": "Emmanuel Macron"}],
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    return c
