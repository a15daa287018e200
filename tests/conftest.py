import os

# keep the app from building a postgres engine during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quizbank.core.auth import create_token, ADMIN, PARTICIPANT
from quizbank.core.database import get_db
from quizbank.main import app
from quizbank.models.orm import Base, Question, Option, QuestionType, Complexity


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool, future=True)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_question(db, complexity="easy", qtype="objective", correct="A", subject=None, text=None):
    q = Question(text=text or f"{complexity} question", type=QuestionType(qtype), complexity=Complexity(complexity),
                 correct_answer=correct, subject=subject)
    if q.type == QuestionType.OBJECTIVE:
        # inserted out of order to check options come back sorted by letter
        q.options = [Option(letter=letter, text=f"option {letter}") for letter in ("C", "A", "D", "B")]
    db.add(q)
    return q


@pytest.fixture
def seed_bank(db):
    """Seed ``easy``/``moderate``/``complex`` counts; returns the created ids by level."""
    def seed(easy=4, moderate=4, complex_=2, qtype="objective"):
        created = {"easy": [], "moderate": [], "complex": []}
        for level, n in (("easy", easy), ("moderate", moderate), ("complex", complex_)):
            for i in range(n):
                correct = "A" if qtype == "objective" else f"answer {level} {i}"
                created[level].append(add_question(db, level, qtype, correct, subject="Science" if i % 2 else "History"))
        db.commit()
        return {level: [q.id for q in qs] for level, qs in created.items()}
    return seed


def auth_header(user_id="user-1", roles=(PARTICIPANT,)):
    return {"Authorization": f"Bearer {create_token(user_id, list(roles))}"}


@pytest.fixture
def participant():
    return auth_header("user-1", (PARTICIPANT,))


@pytest.fixture
def admin():
    return auth_header("admin-1", (ADMIN,))
