from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from quizbank.core.config import settings
from quizbank.models.orm import Base


def _connect_args(url: str) -> dict:
    # sqlite connections are shared across the threadpool FastAPI runs sync routes on
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True, pool_pre_ping=True,
                       connect_args=_connect_args(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def init_db(bind=None):
    """Create tables if they don't exist."""
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
