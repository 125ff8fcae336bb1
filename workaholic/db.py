# PURPOSE: engine and Session factories shared by request handlers, the scheduler and tests.

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

# Seconds a SQLite writer waits on a lock held by another thread
SQLITE_BUSY_TIMEOUT = 15


def make_engine(url: str) -> Engine:
    """
    Build an engine for `url`.

    SQLite connections are shared between the request threadpool and the
    scheduler's worker thread, so thread checks are off and writers wait for
    locks instead of failing at once.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT})
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(settings.DATABASE_URL)

# One session per request (get_db) and one per scheduler pass
SessionLocal = make_session_factory(engine)

# Base: parent class for all ORM models (tables)
Base = declarative_base()
