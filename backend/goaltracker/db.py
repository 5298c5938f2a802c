from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from goaltracker.core.config import settings

# SQLAlchemy Base class for models to inherit
Base = declarative_base()


def make_engine(database_url: str):
    """Create an engine for the local store; SQLite needs cross-thread access for FastAPI."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases must share one connection or every session sees an empty db
        if ":memory:" in database_url or database_url.split("://", 1)[-1] == "":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def make_session_factory(bind):
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


# Default engine (connects lazily) and session factory for scripts and migrations
engine = make_engine(settings.database_url)

SessionLocal = make_session_factory(engine)
