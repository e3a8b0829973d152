"""Shared fixtures: isolated in-memory database per test."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Keep tests off the developer's .env database and AI providers.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["ORACLE_GENAI_COMPARTMENT_ID"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from applytrack import models  # noqa: F401
from applytrack.database import Base
from applytrack.services.cooldown import resume_cooldown


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def _reset_cooldown():
    resume_cooldown.reset()
    yield
    resume_cooldown.reset()
