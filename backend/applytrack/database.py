"""SQLAlchemy engine, session factory and the ``get_db`` dependency.

DATABASE_URL picks the backend: the default SQLite file for a single-user
install, or any server database SQLAlchemy supports for a shared deployment.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from applytrack.config import settings

SQLITE_BUSY_TIMEOUT_SECONDS = 15


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Requests are served from a threadpool; writers queue on the file lock.
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
            },
        }
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
    }


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
