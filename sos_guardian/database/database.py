from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from sos_guardian.config import DATABASE_URL, SQL_ECHO


def _engine_options(url: str) -> dict:
    """SQLite needs thread sharing for FastAPI, and in-memory DBs a single connection."""
    if not url.startswith("sqlite"):
        return {"pool_size": 10, "max_overflow": 20, "pool_timeout": 30, "pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


# SQLAlchemy engine (sync version)
engine = create_engine(DATABASE_URL, echo=SQL_ECHO, **_engine_options(DATABASE_URL))

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for all ORM models
Base = declarative_base()

# Dependency to get DB session in FastAPI routes
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
